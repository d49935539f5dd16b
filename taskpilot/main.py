import asyncio
from typing import List, Optional

import typer
from rich.console import Console

app = typer.Typer(invoke_without_command=True)

knowledge_app = typer.Typer(help="Inspect or reset the error knowledge store.")
app.add_typer(knowledge_app, name="knowledge")


@app.callback()
def main(ctx: typer.Context):
    """
    TaskPilot: plans multi-step coding requests and runs them step by step.
    """
    pass


@app.command()
def start(
    prompt: Optional[List[str]] = typer.Argument(
        None, help="Initial prompt to execute immediately"
    ),
):
    """
    Start the interactive TaskPilot session.
    """
    _start_agent(prompt)


def _start_agent(prompt: Optional[List[str]]):
    initial_prompt = " ".join(prompt) if prompt else None

    from taskpilot.controllers.agent_controller import AgentController
    from taskpilot.views.cli_view import CLIView

    view = CLIView()
    controller = AgentController(view=view)

    try:
        asyncio.run(controller.start(initial_prompt))
    except (KeyboardInterrupt, SystemExit):
        pass


@app.command()
def analyze(text: str = typer.Argument(..., help="Request to analyze")):
    """
    Show how complex a request looks and whether a plan would be suggested.
    """
    from taskpilot.services.complexity_service import ComplexityAnalyzer

    analyzer = ComplexityAnalyzer()
    verdict = analyzer.analyze(text)

    console = Console()
    console.print(f"[bold]Level:[/bold] {verdict.level.name}")
    console.print(f"[bold]Score:[/bold] {verdict.score}")
    console.print(f"[bold]Reasoning:[/bold] {verdict.reasoning}")
    if analyzer.should_suggest_plan(verdict):
        console.print("[cyan]A plan would be suggested for this request.[/cyan]")


@knowledge_app.command("insights")
def knowledge_insights():
    """Show what has been learned from past errors."""
    from taskpilot.services.knowledge_service import ErrorKnowledgeStore

    console = Console()
    insights = ErrorKnowledgeStore().get_insights()
    if insights.total_patterns == 0:
        console.print("[green]No learned patterns yet.[/green]")
        return
    console.print(insights.format(), markup=False, highlight=False)


@knowledge_app.command("clear")
def knowledge_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete every learned error pattern."""
    from taskpilot.services.knowledge_service import ErrorKnowledgeStore

    console = Console()
    if not yes and not typer.confirm("Delete all learned error patterns?"):
        console.print("[yellow]Aborted.[/yellow]")
        return
    ErrorKnowledgeStore().clear_knowledge()
    console.print("[green]Learned patterns cleared.[/green]")


if __name__ == "__main__":
    app()
