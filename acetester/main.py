"""
AceTester - AI-driven website testing
Main entry point for the application.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from acetester import __version__
from acetester.config.settings import Settings, get_settings
from acetester.core.types import RunResult
from acetester.monitoring.logger import get_logger, setup_logging
from acetester.orchestration.coordinator import RunCoordinator

console = Console()
logger = get_logger("main")


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="acetester",
        description=f"AceTester - AI-driven website testing v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Test a login flow
  acetester --url https://example.com --prompt "Log in and open the account page" \\
      --username demo --password secret

  # Read the testing instruction from a file
  acetester --url https://example.com --prompt-file instructions.txt

  # Print the result as JSON without saving a report
  acetester --url https://example.com --prompt "Submit the contact form empty" --json --no-save

  # Test your OpenAI API configuration
  acetester --test-api
        """,
    )

    # Utility commands
    utility_group = parser.add_mutually_exclusive_group()
    utility_group.add_argument(
        "--test-api",
        action="store_true",
        help="Test OpenAI API key configuration",
    )
    utility_group.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )

    # Run input
    parser.add_argument(
        "-u", "--url",
        help="Website URL to test",
    )
    prompt_group = parser.add_mutually_exclusive_group()
    prompt_group.add_argument(
        "-p", "--prompt",
        help="Natural-language testing instruction",
    )
    prompt_group.add_argument(
        "--prompt-file",
        type=Path,
        help="Path to a file containing the testing instruction",
    )
    parser.add_argument(
        "--username",
        help="Username the planner may use to log in",
    )
    parser.add_argument(
        "--password",
        help="Password to fill into login forms (never sent to the AI)",
    )

    # Browser options
    headless_group = parser.add_mutually_exclusive_group()
    headless_group.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help="Run browser in headless mode",
    )
    headless_group.add_argument(
        "--headed",
        dest="headless",
        action="store_false",
        help="Run browser with a visible window",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Default wait ceiling for each browser action in milliseconds",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Directory for saved reports (default: reports/)",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not save the report to disk",
    )
    parser.add_argument(
        "--no-ai-log",
        action="store_true",
        help="Use plain outcome lines instead of AI-formatted log entries",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run result as JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose structured logging output (JSON)",
    )

    return parser


def apply_overrides(settings: Settings, parsed_args: argparse.Namespace) -> Settings:
    """Override settings with command line arguments."""
    if parsed_args.debug:
        settings.debug_mode = True
        settings.log_level = "DEBUG"

    if parsed_args.verbose:
        settings.log_format = "json"

    if parsed_args.headless is not None:
        settings.browser_headless = parsed_args.headless

    if parsed_args.timeout is not None:
        if parsed_args.timeout <= 0 or parsed_args.timeout > settings.browser_launch_timeout:
            raise ValueError(
                "--timeout must be positive and no greater than the browser "
                f"launch timeout ({settings.browser_launch_timeout} ms)"
            )
        settings.browser_timeout = parsed_args.timeout

    if parsed_args.output is not None:
        settings.reports_dir = parsed_args.output

    if parsed_args.no_save:
        settings.save_reports = False

    if parsed_args.no_ai_log:
        settings.narrate_with_ai = False

    return settings


def read_prompt_file(file_path: Path) -> str:
    """Read the testing instruction from a file."""
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt file not found: {file_path}")

    console.print(f"\n[cyan]Reading instruction from:[/cyan] {file_path}")
    return file_path.read_text(encoding="utf-8").strip()


def resolve_run_input(parsed_args: argparse.Namespace) -> Tuple[str, str]:
    """Return (url, prompt), asking interactively for whatever is missing."""
    if parsed_args.prompt_file:
        prompt = read_prompt_file(parsed_args.prompt_file)
    elif parsed_args.prompt:
        prompt = parsed_args.prompt
    else:
        prompt = Prompt.ask("[cyan]Enter the testing instruction[/cyan]")

    url = parsed_args.url or Prompt.ask("[cyan]Enter the website URL to test[/cyan]")
    return url, prompt


def build_coordinator(settings: Settings) -> RunCoordinator:
    """Build the run coordinator for the configured settings."""
    return RunCoordinator.from_settings(settings)


def render_result(result: RunResult, as_json: bool = False) -> None:
    """Print a run result to the console."""
    if as_json:
        console.print_json(json.dumps(result.to_response()))
        return

    if result.action_log:
        console.print(Panel(
            result.action_log,
            title="Action Log",
            border_style="cyan",
        ))

    if result.report:
        console.print(Panel(
            result.report,
            title="Testing Report",
            border_style="green",
        ))

    if result.success:
        console.print("[green]✓ Test run completed[/green]")
    else:
        console.print(f"[red]✗ Test run failed: {result.error}[/red]")


async def run_test(
    url: str,
    prompt: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    settings: Optional[Settings] = None,
    as_json: bool = False,
) -> int:
    """
    Run a single test and print its result.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    settings = settings or get_settings()

    if not as_json:
        console.print(Panel.fit(
            "[bold cyan]AceTester - AI-driven website testing[/bold cyan]\n"
            f"Target: {url}",
            border_style="cyan",
        ))

    coordinator = build_coordinator(settings)
    request: Dict[str, Any] = {
        "url": url,
        "prompt": prompt,
        "username": username,
        "password": password,
    }

    if as_json:
        result = await coordinator.run(request)
    else:
        with console.status("[cyan]Running test...[/cyan]"):
            result = await coordinator.run(request)

    render_result(result, as_json=as_json)
    return 0 if result.success else 1


async def test_api_connection() -> int:
    """Test OpenAI API connection."""
    console.print("\n[bold cyan]Testing OpenAI API Connection[/bold cyan]")

    try:
        from acetester.models.openai_client import OpenAIClient

        console.print("[cyan]Testing API key...[/cyan]")
        client = OpenAIClient(model=get_settings().openai_model)
        response = await client.call(
            messages=[{"role": "user", "content": "Say 'API test successful' and nothing else."}],
        )

        if "API test successful" in str(response["content"]):
            console.print("[green]✓ OpenAI API connection successful![/green]")
            console.print(f"[dim]Model: {response['model']}[/dim]")
            console.print(f"[dim]Usage: {response['usage']['total_tokens']} tokens[/dim]")
            return 0
        else:
            console.print("[red]✗ Unexpected API response[/red]")
            return 1

    except Exception as e:
        console.print(f"[red]✗ API test failed: {e}[/red]")
        console.print("\n[yellow]Please check:[/yellow]")
        console.print("1. Your OPENAI_API_KEY environment variable is set")
        console.print("2. Your API key has sufficient credits")
        return 1


def show_version() -> int:
    """Show version information."""
    console.print("\n[bold cyan]AceTester - AI-driven website testing[/bold cyan]")
    console.print(f"Version: [green]{__version__}[/green]")
    console.print("Python: [dim]3.10+[/dim]")
    return 0


async def async_main(args: Optional[list[str]] = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.version:
        return show_version()

    if parsed_args.test_api:
        return await test_api_connection()

    settings = get_settings()
    try:
        apply_overrides(settings, parsed_args)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        sanitize_logs=settings.sanitize_logs,
        stream=sys.stderr if parsed_args.json else None,
    )
    settings.create_directories()

    try:
        url, prompt = resolve_run_input(parsed_args)
    except (OSError, EOFError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    return await run_test(
        url=url,
        prompt=prompt,
        username=parsed_args.username,
        password=parsed_args.password,
        settings=settings,
        as_json=parsed_args.json,
    )


def main(args: Optional[list[str]] = None) -> int:
    """
    Main entry point for AceTester.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Test run interrupted by user[/yellow]")
        return 130
    except Exception as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
