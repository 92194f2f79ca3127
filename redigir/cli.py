"""redigir CLI — run text transformations and essay evaluations from the terminal.

Usage:
    redigir transform "Isso é muito importante." --type synonyms
    redigir transform "O tema é relevante. Há causas." --type causal_structure --sub-type problema-causa --json
    redigir evaluate redacao.txt --topic "Desafios da educação"
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="redigir",
    help="redigir — cached, rule-first LLM transformations for Portuguese essay writing.",
    no_args_is_help=True,
)


def _init_logging() -> None:
    """Initialize nfo logging from .env config (called once per CLI invocation)."""
    from redigir.env_config import load_dotenv_if_available
    from redigir.logging_setup import get_logger

    # REDIGIR_LOG_LEVEL / REDIGIR_NFO_* may come from the .env file
    load_dotenv_if_available()
    get_logger()


@app.command()
def transform(
    text: str = typer.Argument(..., help="Text to transform (max 2000 chars by default)"),
    type_: str = typer.Option("synonyms", "--type", "-t", help="Transformation type (see `redigir types`)"),
    difficulty: Optional[str] = typer.Option(None, "--difficulty", "-d", help="Word difficulty: simple|medium|complex"),
    formality: Optional[int] = typer.Option(None, "--formality", "-f", help="Formality level 0-100"),
    sub_type: Optional[str] = typer.Option(None, "--sub-type", "-s", help="Structure sub-type (e.g. problema-causa)"),
    intensity: Optional[int] = typer.Option(None, "--intensity", "-i", help="Argumentative level 0-100"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Owner id for the session cache tier"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Optional YAML config file"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Transform a text through cache → local rules → LLM → fallback."""
    from redigir.core import get_orchestrator, transform_text
    from redigir.errors import TextValidationError
    from redigir.models import TransformationType

    _init_logging()

    try:
        ttype = TransformationType(type_)
    except ValueError:
        typer.echo(f"Unknown type '{type_}'. Run `redigir types` for the list.", err=True)
        raise typer.Exit(2)

    options: dict[str, object] = {}
    if difficulty is not None and ttype in (TransformationType.FORMALITY, TransformationType.SYNONYMS):
        options["word_difficulty"] = difficulty
    if formality is not None and ttype == TransformationType.FORMALITY:
        options["formality_level"] = formality
    if sub_type is not None:
        options["structure_sub_type"] = sub_type
    if intensity is not None:
        options["argumentative_level"] = intensity

    orchestrator = get_orchestrator(config_path=config)
    try:
        result = asyncio.run(transform_text(text, ttype, owner_id=owner, orchestrator=orchestrator, **options))
    except TextValidationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    if json_output:
        typer.echo(result.model_dump_json(indent=2))
    else:
        typer.echo(f"\n{'='*60}")
        typer.echo(f"✍️  {result.type.value} [{result.source.value}]")
        typer.echo(f"{'='*60}")
        typer.echo(f"\n{result.content}\n")
        typer.echo(f"{'='*60}")
        typer.echo(f"   Tokens: ~{result.token_estimate or 0} | Changes: {result.changes}")


@app.command()
def evaluate(
    essay_file: Path = typer.Argument(..., exists=True, readable=True, help="Text file with the essay"),
    topic: str = typer.Option("", "--topic", "-T", help="Essay topic"),
    exam_type: str = typer.Option("ENEM", "--exam", "-e", help="Exam type"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Optional YAML config file"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Score an essay on the five ENEM competencies."""
    from redigir.core import evaluate_essay, get_orchestrator
    from redigir.errors import TextValidationError

    _init_logging()

    essay = essay_file.read_text(encoding="utf-8")
    orchestrator = get_orchestrator(config_path=config)
    try:
        result = asyncio.run(evaluate_essay(essay, topic=topic, exam_type=exam_type, orchestrator=orchestrator))
    except TextValidationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    if json_output:
        typer.echo(result.model_dump_json(indent=2))
        return

    evaluation = result.evaluation
    typer.echo(f"\n{'='*60}")
    typer.echo(f"📝 {result.content} [{result.source.value}]")
    typer.echo(f"{'='*60}")
    if evaluation is not None:
        for comp in evaluation.competencies:
            typer.echo(f"   {comp.score:>3}/{comp.max_score}  {comp.name}")
        if evaluation.reconciled:
            typer.echo(f"   ⚠️  Total informado ({evaluation.reported_total}) ajustado para a soma das competências")
        if evaluation.feedback:
            typer.echo(f"\n{evaluation.feedback}")
    typer.echo(f"{'='*60}")


@app.command()
def types():
    """List supported transformation types and whether they can be served locally."""
    from redigir.local_rules import LocalRuleEngine
    from redigir.models import TransformationType

    for ttype in TransformationType:
        marker = "local+llm" if ttype in LocalRuleEngine.LOCAL_TYPES else "llm"
        typer.echo(f"  {ttype.value:<24} {marker}")


@app.command()
def doctor(
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
):
    """Show the resolved model and which provider keys are configured."""
    from redigir.env_config import check_providers, get_env_config, provider_for_model

    env = get_env_config(str(env_file) if env_file else None)

    typer.echo(f"\n✍️  redigir doctor")
    typer.echo(f"{'='*60}")
    typer.echo(f"   Model: {env.model} (provider: {provider_for_model(env.model)})")
    if env.fallbacks:
        typer.echo(f"   Fallbacks: {', '.join(env.fallbacks)}")
    typer.echo(f"   Timeout: {env.timeout}s | Max tokens: {env.max_tokens}")
    for name, status in check_providers(env).items():
        icon = "✅" if status["status"] == "configured" else "⏭️ "
        typer.echo(f"   {icon} {name}: {status['detail']}")
    typer.echo(f"{'='*60}\n")


if __name__ == "__main__":
    app()
