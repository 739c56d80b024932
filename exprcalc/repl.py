import logging
from typing import Optional

import typer

from exprcalc.parser import AssignVariable, ParserError, ParserInvariantError
from exprcalc.runtime import CalcRuntimeError
from exprcalc.session import calculate, initial_variables
from exprcalc.tokenizer import TokenizerError
from exprcalc.utils import format_number

logger = logging.getLogger(__name__)

app = typer.Typer(help="Arithmetic expression calculator", add_completion=False)


def run_line(code: str, variables: dict[str, float]) -> bool:
    """Evaluates one line and prints its value, errors are reported and leave the session usable"""
    try:
        result, value = calculate(code, variables)
    except (TokenizerError, ParserError, CalcRuntimeError) as e:
        typer.echo(str(e), err=True)
        return False
    except ParserInvariantError as e:
        logger.error("Internal error while parsing %r", code, exc_info=True)
        typer.echo(str(e), err=True)
        return False

    if not isinstance(result, AssignVariable):
        typer.echo(format_number(value))
    return True


@app.command()
def main(
    expressions: Optional[list[str]] = typer.Argument(
        None, help="Lines to evaluate in order, use '--' before lines starting with '-'"
    ),
    prompt: str = typer.Option("> ", "--prompt", envvar="EXPRCALC_PROMPT", help="Interactive prompt"),
    no_constants: bool = typer.Option(False, "--no-constants", help="Start without e, pi and tau"),
    log_level: str = typer.Option("WARNING", "--log-level", envvar="LOG_LEVEL", help="Logging level"),
) -> None:
    """Evaluate the given lines, or start an interactive session ended by an empty line."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    variables = {} if no_constants else initial_variables()

    if expressions:
        results = [run_line(code, variables) for code in expressions]
        if not all(results):
            raise typer.Exit(code=1)
        return

    while True:
        try:
            code = input(prompt)
        except EOFError:
            break
        if not code:
            break
        run_line(code, variables)
    logger.debug("Session ended with variables %s", variables)
