import sys
from typing import Any, ContextManager, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory

from taskpilot.config import Config
from taskpilot.models.execution import ExecutionSummary
from taskpilot.models.recovery import RecoverySuggestion
from taskpilot.models.task import Task
from taskpilot.views.base_view import BaseView

CHOICE_ALIASES = {"r": "retry", "s": "skip", "q": "stop", "quit": "stop"}

SHORTCUTS = {
    option: key for key, option in CHOICE_ALIASES.items() if len(key) == 1
}

STATUS_ICONS = {
    "pending": "⏳",
    "in_progress": "🔄",
    "completed": "✅",
    "failed": "❌",
}


def match_choice(answer: str, options: Sequence[str]) -> Optional[str]:
    """
    Resolves an operator answer against the offered options.

    Accepts the option itself, a known shortcut ("r", "s", "q", "quit"), or
    an unambiguous prefix. Returns None when nothing matches.
    """
    normalized = answer.strip().lower()
    if not normalized:
        return None

    lowered = {option.lower(): option for option in options}
    if normalized in lowered:
        return lowered[normalized]

    alias = CHOICE_ALIASES.get(normalized)
    if alias and alias in lowered:
        return lowered[alias]

    candidates = [option for key, option in lowered.items() if key.startswith(normalized)]
    if len(candidates) == 1:
        return candidates[0]
    return None



def shortcut_for(option: str) -> str:
    """The one-letter key shown next to an option."""
    return SHORTCUTS.get(option.lower(), option[:1].lower())

class CLIView(BaseView):
    def __init__(
        self,
        console: Optional[Console] = None,
        prompt_session: Optional[PromptSession] = None,
    ):
        # Write to the real stdout to avoid Typer encoding issues
        self.console = console or Console(file=sys.__stdout__, force_terminal=True)

        if prompt_session is None:
            Config.ensure_config_dir()
            prompt_session = PromptSession(history=FileHistory(Config.HISTORY_FILE))
        self.session = prompt_session

        self.controller = None

    def set_controller(self, controller):
        self.controller = controller

    async def print_welcome(self):
        welcome_text = Text()
        welcome_text.append("TaskPilot", style="bold cyan")
        welcome_text.append(" · ", style="dim")
        welcome_text.append(Config.LLM_MODEL, style="dim")

        self.console.print(
            Panel(welcome_text, style="cyan", box=box.ROUNDED, padding=(0, 1))
        )
        self.console.print(
            "[dim]Describe a change, or use [bold]@plan[/bold] and [bold]@errors[/bold].[/dim]"
        )
        self.console.print("[dim]Type [bold]exit[/bold] to quit · History: ↑/↓[/dim]\n")

    async def start_app(self):
        """Runs the REPL until the controller asks to exit."""
        from prompt_toolkit.patch_stdout import patch_stdout

        while True:
            try:
                with patch_stdout():
                    user_input = await self.session.prompt_async(
                        HTML("<ansiblue>➤ </ansiblue>")
                    )

                if not user_input.strip():
                    continue

                if self.controller and not await self.controller.handle_input(
                    user_input
                ):
                    break

            except (EOFError, KeyboardInterrupt):
                break
            except Exception as e:
                self.console.print(f"[bold red]Error in REPL loop: {e}[/bold red]")

        await self.print_goodbye()

    async def ask_choice(self, prompt: str, options: Sequence[str]) -> str:
        """Blocks until the operator picks one of the options.

        End of input or Ctrl+C counts as "stop" when that option is offered.
        """
        self.console.print()
        self.console.print(f"[bold]{escape(prompt)}[/bold]")
        for option in options:
            self.console.print(f"  [green]{shortcut_for(option)})[/green] {option}")
        shortcuts = "/".join(shortcut_for(option) for option in options)

        while True:
            try:
                answer = await self.session.prompt_async(f"Your choice [{shortcuts}]: ")
            except (EOFError, KeyboardInterrupt):
                if "stop" in options:
                    return "stop"
                raise

            choice = match_choice(answer, options)
            if choice:
                return choice
            self.console.print(
                f"[yellow]Invalid choice. Please enter one of: {', '.join(options)}[/yellow]"
            )

    async def print_agent_response(self, text: str):
        self.console.print()
        for line in text.split("\n"):
            self.console.print(f"  {line}", style="default", highlight=False)
        self.console.print()

    async def print_plan(self, plan_data: Dict[str, Any]):
        goal = plan_data.get("goal", "Unknown Goal")
        tasks = plan_data.get("tasks", [])

        tree = Tree(f"[bold]{escape(goal)}[/bold]")
        for task in tasks:
            icon = STATUS_ICONS.get(task["status"], "⏳")
            label = f"{icon} {task['number']}. {escape(task['description'])}"
            node = tree.add(label)
            if task.get("error"):
                node.add(f"[red]{escape(task['error'])}[/red]")

        self.console.print(tree)

    async def print_text(self, text: str):
        """Prints pre-rendered plain text without markup processing."""
        self.console.print(text, markup=False, highlight=False)

    async def print_info(self, message: str):
        self.console.print(f"[cyan]{escape(message)}[/cyan]", highlight=False)

    async def print_success(self, message: str):
        self.console.print(f"[green]✓ {escape(message)}[/green]", highlight=False)

    async def print_error(self, message: str):
        self.console.print(
            Panel(
                Text(message, style="white"),
                title="[bold]Error[/bold]",
                border_style="red",
                padding=(0, 1),
            )
        )

    async def print_goodbye(self):
        self.console.print("[bold cyan]👋 Goodbye![/bold cyan]")

    def print_execution_start(self, total: int):
        self.console.print()
        self.console.print(Rule("[bold cyan]AUTOMATIC PLAN EXECUTION[/bold cyan]"))
        self.console.print(f"Starting automatic execution of {total} task(s)")
        self.console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    def print_task_start(self, task: Task, total: int):
        self.console.print(
            Rule(f"[yellow]Task #{task.number}/{total}: {escape(task.description)}[/yellow]")
        )

    def print_task_success(self, task: Task, retried: bool = False):
        suffix = " on retry" if retried else " successfully"
        self.console.print(f"[green]✓ Task completed{suffix}[/green]\n")

    def print_task_failure(
        self,
        task: Task,
        error: str,
        suggestions: Optional[List[RecoverySuggestion]] = None,
        final: bool = False,
    ):
        label = "Task failed again" if final else "Task failed"
        self.console.print(f"[red]✗ {label}: {escape(error)}[/red]", highlight=False)

        for suggestion in suggestions or []:
            body = Text(suggestion.description + "\n", style="default")
            for action in suggestion.actions:
                body.append(f"• {action}\n", style="dim")
            body.append(
                f"Recommended: {suggestion.recommended_action.display_name}",
                style="bold",
            )
            self.console.print(
                Panel(
                    body,
                    title=f"[bold]{suggestion.title}[/bold]",
                    border_style="yellow",
                    padding=(0, 1),
                )
            )

    def print_execution_summary(self, summary: ExecutionSummary):
        table = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right")
        table.add_row("Total Tasks", str(summary.total))
        table.add_row("Completed", f"[green]{summary.completed}[/green]")
        table.add_row(
            "Failed", f"[red]{summary.failed}[/red]" if summary.failed else "0"
        )
        table.add_row(
            "Skipped",
            f"[yellow]{summary.skipped}[/yellow]" if summary.skipped else "0",
        )

        self.console.print(Rule("[bold cyan]EXECUTION SUMMARY[/bold cyan]"))
        self.console.print(Panel(table, title="RESULTS", border_style="cyan"))

    def create_spinner(self, text: str) -> ContextManager:
        return self.console.status(f"[bold cyan]{text}[/bold cyan]", spinner="dots")
