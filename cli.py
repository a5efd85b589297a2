import time

import click

from config import CFG, ENGINES
from models import UnknownShapeError
from progress import reset as progress_reset, start_timer as progress_start
from puzzle_input import PuzzleFormatError, read_puzzle
from solver.orchestrator import solve_puzzle


def _fmt_runtime(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.3f}s"


@click.command()
@click.argument('puzzle_file', required=False, type=click.Path(exists=True, dir_okay=False))
@click.option('-e', '--engine', type=click.Choice(ENGINES), default=None,
              help='Search engine, defaults to PP_ENGINE')
@click.option('-w', '--workers', type=click.IntRange(min=1), default=None,
              help='Worker processes for independent regions')
@click.option('--allow-slack', is_flag=True,
              help='Allow cells to stay empty instead of requiring an exact cover')
@click.option('-v', '--verbose', is_flag=True, help='Print the outcome of every region')
def main(puzzle_file, engine, workers, allow_slack, verbose):
    """Count the regions of PUZZLE_FILE that can be packed with their presents."""
    start = time.monotonic()
    path = puzzle_file or CFG.INPUT_FILE

    try:
        puzzle = read_puzzle(path)
    except OSError as e:
        raise click.ClickException(f"cannot read {path}: {e}")
    except PuzzleFormatError as e:
        raise click.ClickException(f"{path}: {e}")

    progress_reset()
    progress_start()
    try:
        summary = solve_puzzle(puzzle, engine=engine, workers=workers, allow_slack=True if allow_slack else None)
    except UnknownShapeError as e:
        raise click.ClickException(str(e))

    if verbose:
        for result in summary.results:
            click.echo(f'{result.label}: {result.status} via {result.engine} ({result.reason})')

    click.echo(f'Solvable regions: {summary.solvable_count}')
    if summary.unknown_count:
        click.echo(f'Undecided regions: {summary.unknown_count}')
    click.echo(f'Runtime: {_fmt_runtime(time.monotonic() - start)}')


if __name__ == '__main__':
    main()
