"""
Console interaction for the Batch Transcoder.

Provides a shared Rich console, the comparison table, a batch progress bar and
`ConsolePrompter`, which asks the user to pick a profile and to approve a
sample. The prompter reads answers through an injectable function so the
approval loop can be driven by a script in tests.
"""

from pathlib import Path
from typing import Callable, Optional, Sequence

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Column, Table
from rich.theme import Theme

from .domain.exceptions import SelectionInputError, TranscodeAborted
from .domain.models import ComparisonRecord
from .utils.format_utils import format_percent

BT_THEME = Theme({
    "success": "green",
    "error": "red",
    "warning": "yellow",
    "info": "cyan",
    "filename": "bold white",
    "dim": "dim",
})

console = Console(theme=BT_THEME)

YES_ANSWERS = ("y",)
NO_ANSWERS = ("n",)


def section_header(title: str, subtitle: Optional[str] = None, out: Console = console):
    """Display a section header as a Rich Panel."""
    content = title
    if subtitle:
        content += f"\n[dim]{subtitle}[/dim]"
    out.print()
    out.print(Panel(content, style="bold cyan", expand=True))


def _flag(value: Optional[bool]) -> str:
    if value is None:
        return ""
    return "[success]yes[/success]" if value else "[error]no[/error]"


def build_comparison_table(records: Sequence[ComparisonRecord], title: str) -> Table:
    """Builds the side-by-side source/target table for a set of records."""
    table = Table(title=title, show_lines=False, header_style="bold")
    table.add_column("File", style="filename", no_wrap=True)
    table.add_column("Source", justify="left")
    table.add_column("Target", justify="left")
    table.add_column("Src Bitrate", justify="right")
    table.add_column("Tgt Bitrate", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Same Size", justify="center")
    table.add_column("Same Codec", justify="center")
    table.add_column("Audio (src → tgt)", justify="left")

    for record in records:
        src, tgt = record.source, record.target
        change = record.bitrate_reduction_percent
        change_style = "success" if change is not None and change < 0 else "warning"
        table.add_row(
            escape(record.file_name),
            escape(f"{src.container_format or '?'} {src.video_codec or '?'} {src.resolution}") if src else "[dim]-[/dim]",
            escape(f"{tgt.container_format or '?'} {tgt.video_codec or '?'} {tgt.resolution}") if tgt else "[dim]-[/dim]",
            src.total_bit_rate_formatted if src else "",
            tgt.total_bit_rate_formatted if tgt else "",
            f"[{change_style}]{format_percent(change)}[/{change_style}]" if change is not None else "",
            _flag(record.dimensions_match),
            _flag(record.video_codec_match),
            escape(f"{src.audio_codecs if src else '-'} → {tgt.audio_codecs if tgt else '-'}"),
        )
    return table


class ComparisonPresenter:
    """Renders comparison records on the console."""

    def __init__(self, out: Console = console):
        self.console = out

    def show(self, records: Sequence[ComparisonRecord], title: str):
        if not records:
            self.console.print("[warning]Nothing to compare.[/warning]")
            return
        self.console.print(build_comparison_table(records, title))


def create_batch_progress(out: Console = console) -> Progress:
    """
    Create a Rich Progress bar for a sequential encode batch.
    transient=True so the bar disappears after completion.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn(
            "[progress.description]{task.description}",
            table_column=Column(ratio=1, no_wrap=True, overflow="ellipsis"),
        ),
        BarColumn(),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=out,
        transient=True,
    )


class BatchProgress:
    """
    A progress sink for `EncodeInvoker.encode_many`.

    Usage:
        with BatchProgress("Sample encode") as progress:
            invoker.encode_many(jobs, profile, progress=progress)
    """

    def __init__(self, description: str, out: Console = console):
        self.description = description
        self.console = out
        self._progress: Optional[Progress] = None
        self._task_id = None

    def __enter__(self) -> "BatchProgress":
        self._progress = create_batch_progress(self.console)
        self._progress.start()
        return self

    def __call__(self, index: int, total: int, source_path: Path):
        if self._progress is None:
            return
        if self._task_id is None:
            self._task_id = self._progress.add_task(self.description, total=total)
        self._progress.update(
            self._task_id,
            completed=index - 1,
            description=f"{self.description}: {escape(source_path.name)}",
        )

    def __exit__(self, exc_type, exc, tb):
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        return False


class ConsolePrompter:
    """
    Asks the user to choose a profile and to approve a sample encode.

    Invalid answers are explained and asked again; they never end the run.
    If the input stream is closed, `TranscodeAborted` is raised instead of
    asking forever.

    Args:
        out: The console used for menus and messages.
        input_func: Reads one answer given a prompt string. Defaults to
            `Console.input`.
    """

    def __init__(self, out: Console = console, input_func: Optional[Callable[[str], str]] = None):
        self.console = out
        self.input_func = input_func or out.input

    def _read(self, prompt: str) -> str:
        try:
            return self.input_func(prompt)
        except EOFError as e:
            raise TranscodeAborted("Input closed while waiting for an answer.") from e

    @staticmethod
    def parse_selection(answer: str, option_count: int) -> int:
        """
        Converts a 1-based menu answer into a 0-based index.

        Raises:
            SelectionInputError: For non-numeric or out-of-range answers.
        """
        answer = answer.strip()
        if not answer.isdigit():
            raise SelectionInputError(f"'{answer}' is not a number.")
        number = int(answer)
        if not 1 <= number <= option_count:
            raise SelectionInputError(f"{number} is out of range 1-{option_count}.")
        return number - 1

    @staticmethod
    def parse_yes_no(answer: str) -> bool:
        """
        Accepts Y/y or N/n only.

        Raises:
            SelectionInputError: For any other answer.
        """
        normalized = answer.strip().lower()
        if normalized in YES_ANSWERS:
            return True
        if normalized in NO_ANSWERS:
            return False
        raise SelectionInputError(f"'{answer.strip()}' is not Y or N.")

    def select(self, title: str, options: Sequence[str]) -> int:
        """
        Shows a numbered list and returns the 0-based index of the choice.
        """
        if not options:
            raise ValueError("Cannot select from an empty list.")
        self.console.print(f"\n[bold]{title}[/bold]")
        for number, option in enumerate(options, start=1):
            self.console.print(f"  [info]{number}[/info]. {escape(option)}")

        while True:
            answer = self._read(f"Enter a number (1-{len(options)}): ")
            try:
                return self.parse_selection(answer, len(options))
            except SelectionInputError as e:
                logger.debug(f"Rejected selection input: {e}")
                self.console.print(f"[warning]{escape(str(e))} Please try again.[/warning]")

    def confirm(self, question: str) -> bool:
        """Asks a yes/no question until the answer is Y or N."""
        while True:
            answer = self._read(f"{question} [Y/N]: ")
            try:
                return self.parse_yes_no(answer)
            except SelectionInputError as e:
                logger.debug(f"Rejected approval input: {e}")
                self.console.print(f"[warning]{escape(str(e))} Please answer Y or N.[/warning]")
