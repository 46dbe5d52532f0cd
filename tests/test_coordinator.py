# tests/test_coordinator.py
from __future__ import annotations

import asyncio
import io
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

from testfleet.coordinator import InternalError, RunSettings, report, run_all, run_and_report
from testfleet.executor import UnitOutcome
from testfleet.languages import LanguageSpec
from testfleet.runner import ProcessResult

FAST = RunSettings(max_concurrency=1, unit_timeout=30.0, grace_period=0)


def _script(tmp_path: Path, log: Path) -> Path:
    """A fake language runner: logs start/end, fails for 'beta', warns for 'gamma'."""
    script = tmp_path / "runner.py"
    script.write_text(
        "import sys, time\n"
        "lang, target = sys.argv[1], sys.argv[2]\n"
        f"log = open(r'{log}', 'a')\n"
        "log.write(f'start {target} {lang}\\n'); log.flush()\n"
        "time.sleep(0.01)\n"
        "if target == 'gamma':\n"
        "    sys.stderr.write('[ratelimit] slow down\\n')\n"
        "log.write(f'end {target} {lang}\\n'); log.close()\n"
        "raise SystemExit(1 if target == 'beta' else 0)\n",
        encoding="utf-8",
    )
    return script


def _languages(script: Path) -> tuple[LanguageSpec, ...]:
    exe = str(Path(sys.executable))
    return tuple(
        LanguageSpec(key, name, (exe, str(script), key))
        for key, name in [
            ("js", "JavaScript"),
            ("php", "PHP"),
            ("python", "Python"),
            ("python3", "Python 3"),
        ]
    )


def test_end_to_end_ceiling_one(tmp_path: Path) -> None:
    log = tmp_path / "log.txt"
    langs = _languages(_script(tmp_path, log))
    out = io.StringIO()

    summary = asyncio.run(
        run_all(["alpha", "beta"], settings=FAST, languages=langs, out=out)
    )

    assert [o.target for o in summary.succeeded] == ["alpha"]
    assert [o.target for o in summary.failed] == ["beta"]
    assert summary.exit_code == 1

    lines = log.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 16
    assert all("alpha" in line for line in lines[:8])
    assert all("beta" in line for line in lines[8:])


def test_filter_subset_runs_two_languages_per_target(tmp_path: Path) -> None:
    log = tmp_path / "log.txt"
    langs = _languages(_script(tmp_path, log))

    asyncio.run(
        run_all(
            ["alpha", "beta"],
            "all",
            ["python3", "php"],
            settings=RunSettings(max_concurrency=2, grace_period=0),
            languages=langs,
            out=io.StringIO(),
        )
    )

    starts = [line for line in log.read_text(encoding="utf-8").splitlines() if line.startswith("start")]
    for target in ("alpha", "beta"):
        ran = [line.split()[2] for line in starts if line.split()[1] == target]
        assert ran == ["php", "python3"]


def test_partitions_and_report(tmp_path: Path) -> None:
    log = tmp_path / "log.txt"
    langs = _languages(_script(tmp_path, log))
    out = io.StringIO()

    code = asyncio.run(
        run_and_report(
            ["alpha", "beta", "gamma"],
            settings=RunSettings(max_concurrency=3, grace_period=0),
            languages=langs,
            out=out,
        )
    )
    text = out.getvalue()

    assert code == 1
    assert text.index("WARN gamma (JavaScript):") < text.index("FAILED beta (JavaScript):")
    assert "FAIL ['beta']" in text
    assert "WARN ['gamma']" in text
    assert text.rstrip().endswith("All done, 1 failed, 1 succeeded, 1 warnings")
    assert "[ratelimit]" in text


def test_duplicate_targets_get_one_outcome(tmp_path: Path) -> None:
    log = tmp_path / "log.txt"
    langs = _languages(_script(tmp_path, log))

    summary = asyncio.run(
        run_all(["alpha", "alpha"], "all", ["js"], settings=FAST, languages=langs, out=io.StringIO())
    )

    assert [o.target for o in summary.outcomes] == ["alpha"]


def test_timed_out_unit_is_failed_and_others_complete() -> None:
    async def runner(argv: Sequence[str]) -> ProcessResult:
        if argv[-1] == "slow":
            await asyncio.sleep(5)
        return ProcessResult(False, "", False, (), 0, 0.0)

    langs = (LanguageSpec("js", "JavaScript", ("node", "x")),)
    settings = RunSettings(max_concurrency=2, unit_timeout=0.2, grace_period=0)

    summary = asyncio.run(
        run_all(["slow", "quick"], settings=settings, languages=langs, runner=runner, out=io.StringIO())
    )

    slow, quick = summary.outcomes
    assert slow.timed_out is True
    assert slow.failed is True
    assert quick.failed is False
    assert summary.exit_code == 1


def test_unexpected_error_is_fatal() -> None:
    async def runner(argv: Sequence[str]) -> ProcessResult:
        raise RuntimeError("runner bug")

    langs = (LanguageSpec("js", "JavaScript", ("node", "x")),)

    with pytest.raises(InternalError) as info:
        asyncio.run(
            run_all(["alpha"], settings=FAST, languages=langs, runner=runner, out=io.StringIO())
        )

    assert info.value.target == "alpha"
    assert isinstance(info.value.cause, RuntimeError)


def test_report_all_ok() -> None:
    from testfleet.coordinator import RunSummary

    ok = UnitOutcome.from_runs("alpha", ())
    out = io.StringIO()

    report(RunSummary((ok,)), out)

    assert "FAIL" not in out.getvalue()
    assert out.getvalue().rstrip().endswith("All done, 1 succeeded")


def test_unexpected_error_aborts_without_waiting_for_siblings() -> None:
    async def runner(argv: Sequence[str]) -> ProcessResult:
        if argv[-1] == "buggy":
            raise RuntimeError("runner bug")
        await asyncio.sleep(2)
        return ProcessResult(False, "", False, (), 0, 0.0)

    langs = (LanguageSpec("js", "JavaScript", ("node", "x")),)
    settings = RunSettings(max_concurrency=2, unit_timeout=30.0, grace_period=0)

    async def main() -> float:
        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(InternalError) as info:
            await run_all(
                ["slow", "buggy"], settings=settings, languages=langs, runner=runner, out=io.StringIO()
            )
        assert info.value.target == "buggy"
        return loop.time() - started

    assert asyncio.run(main()) < 1.0


def test_timed_out_unit_reports_fail_once_and_never_late_ok() -> None:
    async def runner(argv: Sequence[str]) -> ProcessResult:
        if argv[-1] == "slow":
            await asyncio.sleep(0.5)
        return ProcessResult(False, "", False, (), 0, 0.0)

    langs = (LanguageSpec("js", "JavaScript", ("node", "x")),)
    settings = RunSettings(max_concurrency=1, unit_timeout=0.2, grace_period=0)
    out = io.StringIO()

    async def main():
        summary = await run_all(
            ["slow", "a", "b"], settings=settings, languages=langs, runner=runner, out=out
        )
        # Let the abandoned unit finish on its own
        await asyncio.sleep(0.6)
        return summary

    summary = asyncio.run(main())

    assert [o.failed for o in summary.outcomes] == [True, False, False]
    assert out.getvalue().splitlines() == [
        "[33%] Testing slow FAIL",
        "[67%] Testing a OK",
        "[100%] Testing b OK",
    ]
