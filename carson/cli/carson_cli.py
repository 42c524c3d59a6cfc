"""
Carson CLI - Adaptive medical tutoring triage from the terminal.

Usage:
    carson classify "I'm so confused"           # Route an utterance
    carson assess "PID scars the tubes" -t ...   # Grade one answer
    carson requirements "Pathophysiology"        # Show a subtopic budget
    carson prioritize -c "..." -i "..."          # Rank knowledge gaps
    carson tutor "Ectopic pregnancy" -s ...      # Interactive triage session

Every command that needs a model takes --offline to use the heuristic
fallbacks only.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from carson.adaptive.gap_prioritizer import prioritize_gaps
from carson.core.models import AssessmentResult, Gap, GapSeverity, MasteryStatus, Message, NextAction, Session
from carson.core.requirements import requirements_for
from carson.dialogue.detectors import detect_conversational_intent, is_conversational, is_struggling
from carson.dialogue.interaction import InteractionClassifier
from carson.integrations.model_gateway import HttpModelGateway, ModelGateway, OfflineModelGateway
from carson.session.pipeline import SessionManager, TurnOutcome, TurnPipeline
from config import Settings, get_settings

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="carson",
    help="🩺 Carson - Adaptive medical tutoring triage engine",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()

EXIT_WORDS = {"quit", "exit", ":q"}

ACTION_STYLES = {
    NextAction.CONTINUE_CONVERSATION: "cyan",
    NextAction.GIVE_CUE: "yellow",
    NextAction.EXPLAIN: "magenta",
    NextAction.CHECK_UNDERSTANDING: "blue",
    NextAction.COMPLETE_SUBTOPIC: "green",
}


def _build_gateway(settings: Settings, offline: bool) -> ModelGateway:
    if offline or not settings.has_remote_model():
        return OfflineModelGateway()
    return HttpModelGateway.from_settings(settings)


async def _close_gateway(gateway: ModelGateway) -> None:
    if isinstance(gateway, HttpModelGateway):
        await gateway.close()


# =============================================================================
# Single-shot Commands
# =============================================================================


@app.command()
def classify(
    utterance: Annotated[str, typer.Argument(help="Student utterance")],
    topic: Annotated[str, typer.Option("--topic", "-t", help="Session topic")] = "",
    subtopic: Annotated[str | None, typer.Option("--subtopic", "-s", help="Current subtopic")] = None,
    last: Annotated[str | None, typer.Option("--last", "-l", help="Tutor's previous message")] = None,
) -> None:
    """
    Route an utterance without grading it.

    Examples:
        carson classify "Are you a real doctor?"
        carson classify "ready" --last "Shall we begin?"
    """
    classifier = InteractionClassifier()
    result = classifier.classify(utterance, last, topic, subtopic)

    table = Table(title="Interaction", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Type", f"[bold]{result.type.value}[/]")
    table.add_row("Confidence", f"{result.confidence:.0%}")
    table.add_row("Requires assessment", "yes" if result.requires_assessment else "no")
    table.add_row("Struggling", "yes" if is_struggling(utterance) else "no")
    table.add_row("Conversational", "yes" if is_conversational(utterance, last) else "no")
    history = (Message.assistant(last),) if last else ()
    intent = detect_conversational_intent(utterance, Session(topic=topic, history=history))
    table.add_row("Intent", intent.type.value)
    if intent.interrupted_question:
        table.add_row("Resumes", intent.interrupted_question)
    console.print(table)

    if result.suggested_response:
        console.print(Panel(result.suggested_response, title="Suggested reply", border_style="cyan"))


@app.command()
def assess(
    answer: Annotated[str, typer.Argument(help="Student answer to grade")],
    topic: Annotated[str, typer.Option("--topic", "-t", help="Session topic")] = "",
    subtopic: Annotated[str, typer.Option("--subtopic", "-s", help="Current subtopic")] = "General",
    question: Annotated[str, typer.Option("--question", "-q", help="Tutor question being answered")] = "",
    offline: Annotated[bool, typer.Option("--offline", help="Heuristic grading only")] = False,
) -> None:
    """
    Run one graded turn through the full pipeline on a fresh session.

    Examples:
        carson assess "Prerenal AKI from hypovolemia" -t "Acute Kidney Injury" -s "Causes" --offline
    """
    settings = get_settings()
    session = Session.create(topic or subtopic, [subtopic])
    if question:
        session = session.with_message(Message.assistant(question))

    async def _assess() -> AssessmentResult | None:
        gateway = _build_gateway(settings, offline)
        try:
            return await TurnPipeline(gateway, settings).process_turn(answer, session)
        finally:
            await _close_gateway(gateway)

    result = asyncio.run(_assess())
    if result is None:
        console.print("[yellow]Conversational turn: not graded.[/]")
        return

    table = Table(title="Assessment", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Interaction", result.interaction_type.value)
    table.add_row("Quality", f"[bold]{result.quality.value}[/]" if result.quality else "-")
    table.add_row("Phase", result.phase.value if result.phase else "-")
    table.add_row("Next action", result.next_action.value)
    table.add_row("Struggling", "yes" if result.is_struggling else "no")
    table.add_row("Specific gaps", result.specific_gaps or "-")
    if result.clinical_reasoning is not None:
        reasoning = result.clinical_reasoning
        table.add_row("Clinical reasoning", f"{reasoning.score:.2f} ({reasoning.sophistication_level})")
        table.add_row("Reasoning type", reasoning.reasoning_type)
    console.print(table)
    console.print(Panel(result.reasoning, title="Tutor", border_style="cyan"))

    for gap in result.surfaced_gaps:
        console.print(f"  [dim]•[/] {gap}")


@app.command()
def requirements(
    subtopic: Annotated[str, typer.Argument(help="Subtopic title")],
) -> None:
    """Show the question budget for a subtopic."""
    req = requirements_for(subtopic)
    console.print(
        Panel(
            f"Max questions: [bold]{req.max_questions}[/]\n"
            f"Min for mastery: {req.min_questions_for_mastery}\n"
            f"Tests application: {'yes' if req.must_test_application else 'no'}",
            title=subtopic,
            border_style="cyan",
        )
    )


@app.command()
def prioritize(
    critical: Annotated[list[str] | None, typer.Option("--critical", "-c", help="Critical gap")] = None,
    important: Annotated[list[str] | None, typer.Option("--important", "-i", help="Important gap")] = None,
    minor: Annotated[list[str] | None, typer.Option("--minor", "-m", help="Minor gap")] = None,
) -> None:
    """
    Rank knowledge gaps and show the ones worth surfacing now.

    Examples:
        carson prioritize -c "Misses rupture risk" -i "Risk factors" -m "Rare sites"
    """
    gaps = (
        [Gap(g, GapSeverity.CRITICAL) for g in critical or []]
        + [Gap(g, GapSeverity.IMPORTANT) for g in important or []]
        + [Gap(g, GapSeverity.MINOR) for g in minor or []]
    )
    if not gaps:
        console.print("[yellow]No gaps given.[/]")
        raise typer.Exit(1)

    ranked = prioritize_gaps(gaps)

    table = Table(title=f"Surfacing {len(ranked)} of {len(gaps)} gaps")
    table.add_column("#", style="dim", width=3)
    table.add_column("Gap")
    table.add_column("Severity")
    table.add_column("Score", justify="right")
    table.add_column("Breakdown", style="dim")
    for i, gap in enumerate(ranked, 1):
        breakdown = ", ".join(f"{k}={v}" for k, v in gap.breakdown.items() if v)
        table.add_row(str(i), gap.description, gap.severity.value, str(gap.score), breakdown or "-")
    console.print(table)


# =============================================================================
# Interactive Session
# =============================================================================


@app.command()
def tutor(
    topic: Annotated[str, typer.Argument(help="Topic to study")],
    subtopics: Annotated[list[str] | None, typer.Option("--subtopic", "-s", help="Subtopic (repeatable)")] = None,
    offline: Annotated[bool, typer.Option("--offline", help="Heuristic fallbacks only")] = False,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed phrase-bank choices")] = None,
) -> None:
    """
    Run an interactive triage session.

    Type answers at the prompt; 'quit' ends the session.

    Examples:
        carson tutor "Ectopic pregnancy" -s "Risk factors" -s "Diagnosis" --offline
    """
    settings = get_settings()
    if seed is not None:
        settings = settings.model_copy(update={"random_seed": seed})

    session = Session.create(topic, subtopics or [topic])
    console.print(
        Panel(
            f"[bold cyan]CARSON TRIAGE SESSION[/]\n"
            f"Topic: {topic}\n"
            f"Subtopics: {', '.join(s.title for s in session.subtopics)}\n"
            f"Model: {'offline heuristics' if offline else settings.llm_model}",
            title="🩺",
            border_style="cyan",
        )
    )

    asyncio.run(_run_tutor(settings, session, offline))


async def _run_tutor(settings: Settings, session: Session, offline: bool) -> None:
    gateway = _build_gateway(settings, offline)
    manager = SessionManager(TurnPipeline(gateway, settings))

    try:
        while not session.is_complete:
            subtopic = session.current_subtopic
            try:
                utterance = await asyncio.to_thread(
                    console.input, f"[dim]{subtopic.title if subtopic else session.topic}[/] [bold]you[/] > "
                )
            except (EOFError, KeyboardInterrupt):
                break

            if utterance.strip().lower() in EXIT_WORDS:
                break

            outcome = await manager.handle(session, utterance)
            session = outcome.session
            _render_outcome(outcome)
    finally:
        await _close_gateway(gateway)

    done = sum(1 for s in session.subtopics if s.status == MasteryStatus.UNDERSTOOD)
    console.print(f"\n[bold]Session ended:[/] {done}/{len(session.subtopics)} subtopics complete")


def _render_outcome(outcome: TurnOutcome) -> None:
    result = outcome.result
    if result is None:
        intent = outcome.intent
        label = intent.type.value if intent else "conversational"
        console.print(f"[dim]  ({label} turn, not graded)[/]")
        if intent and intent.should_return_to_flow and intent.interrupted_question:
            console.print(f"  [dim]Back to:[/] {intent.interrupted_question}")
        for line in outcome.messages:
            console.print(f"  {line}")
        return

    style = ACTION_STYLES.get(result.next_action, "white")
    meta = [result.next_action.value]
    if result.quality is not None:
        meta.insert(0, result.quality.value)
    if result.phase is not None:
        meta.append(result.phase.value)
    if result.completion_reason is not None:
        meta.append(result.completion_reason.value)

    console.print(f"[{style}]carson[/] [dim]({' / '.join(meta)})[/]")
    for line in outcome.messages:
        console.print(f"  {line}")
    if result.surfaced_gaps:
        console.print(f"  [dim]Focus: {'; '.join(result.surfaced_gaps)}[/]")


# =============================================================================
# Entry Point
# =============================================================================


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """
    🩺 Carson - Adaptive medical tutoring triage engine

    \b
    Quick Start:
      carson classify "I don't get it"
      carson assess "Prerenal AKI from hypovolemia" --offline
      carson tutor "Acute kidney injury" -s "Pathophysiology" -s "Management"
    """
    settings = get_settings()
    level = "DEBUG" if verbose else settings.log_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
