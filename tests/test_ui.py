from pathlib import Path

import pytest

from batch_transcoder.domain.exceptions import SelectionInputError, TranscodeAborted
from batch_transcoder.domain.media import VideoDescriptor
from batch_transcoder.domain.models import ComparisonRecord
from batch_transcoder.ui import BatchProgress, ComparisonPresenter, ConsolePrompter


def scripted(*answers):
    """An input function that replays answers and then reports a closed stream."""
    remaining = list(answers)
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    read.prompts = prompts
    return read


def test_parse_selection():
    assert ConsolePrompter.parse_selection(" 2 ", 3) == 1
    for answer in ("0", "4", "two", "", "-1"):
        with pytest.raises(SelectionInputError):
            ConsolePrompter.parse_selection(answer, 3)


def test_parse_yes_no():
    assert ConsolePrompter.parse_yes_no("Y") is True
    assert ConsolePrompter.parse_yes_no("n") is False
    for answer in ("yes", "", "maybe"):
        with pytest.raises(SelectionInputError):
            ConsolePrompter.parse_yes_no(answer)


def test_select_asks_again_until_valid(quiet_console):
    read = scripted("abc", "9", "2")
    prompter = ConsolePrompter(out=quiet_console, input_func=read)

    assert prompter.select("Pick", ["first", "second"]) == 1
    assert len(read.prompts) == 3
    assert "Please try again" in quiet_console.file.getvalue()


def test_confirm_asks_again_until_y_or_n(quiet_console):
    read = scripted("sure", "N")
    prompter = ConsolePrompter(out=quiet_console, input_func=read)
    assert prompter.confirm("Approve?") is False
    assert len(read.prompts) == 2


def test_closed_input_aborts(quiet_console):
    prompter = ConsolePrompter(out=quiet_console, input_func=scripted())
    with pytest.raises(TranscodeAborted):
        prompter.confirm("Approve?")


def test_select_from_empty_list_is_an_error(quiet_console):
    with pytest.raises(ValueError):
        ConsolePrompter(out=quiet_console, input_func=scripted("1")).select("Pick", [])


def test_presenter_renders_names_with_brackets(quiet_console):
    source = VideoDescriptor("[Group] Show 01", Path("/src/[Group] Show 01.mp4"), total_bit_rate_raw=2_000_000)
    target = VideoDescriptor("[Group] Show 01", Path("/out/[Group] Show 01.mkv"), total_bit_rate_raw=1_000_000)

    ComparisonPresenter(quiet_console).show([ComparisonRecord(source, target, -50.0)], "Round 1")

    output = quiet_console.file.getvalue()
    assert "[Group] Show 01" in output
    assert "-50.00 %" in output


def test_presenter_flags_codec_parity(quiet_console):
    source = VideoDescriptor("movie", Path("/src/movie.mp4"), video_codec="AVC", width=1920, height=1080)
    target = VideoDescriptor("movie", Path("/out/movie.mkv"), video_codec="HEVC", width=1920, height=1080)

    ComparisonPresenter(quiet_console).show([ComparisonRecord(source, target, None)], "Round 1")

    output = quiet_console.file.getvalue()
    assert "Same Codec" in output
    assert "yes" in output and "no" in output


def test_presenter_without_records(quiet_console):
    ComparisonPresenter(quiet_console).show([], "Empty")
    assert "Nothing to compare" in quiet_console.file.getvalue()


def test_batch_progress_is_a_progress_callback(quiet_console):
    with BatchProgress("Encode", out=quiet_console) as progress:
        progress(1, 2, Path("a.mp4"))
        progress(2, 2, Path("b.mp4"))
    progress(3, 2, Path("c.mp4"))
