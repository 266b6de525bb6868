"""Tests for the analyze_book CLI."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from novelgraph.analysis import AnalysisRun, RunState
from novelgraph.scripts import analyze_book as cli


class TestAnalyzeBook:
    """Test the CLI run loop."""

    @pytest.fixture
    def collaborators(self):
        """Patch out network-backed collaborators."""
        with patch.object(cli, "GutenbergFetcher"), patch.object(cli, "OpenAIOracle"):
            yield

    @pytest.mark.asyncio
    async def test_printer_cancelled_when_run_raises(self, collaborators):
        cancelled = asyncio.Event()

        async def wait_forever(subscriber, verbose):
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def interrupted_run(session_id, document_id):
            await asyncio.sleep(0)
            raise RuntimeError("interrupted")

        orchestrator = MagicMock()
        orchestrator.run = interrupted_run

        with patch.object(cli, "print_events", wait_forever), \
                patch.object(cli, "AnalysisOrchestrator", return_value=orchestrator):
            with pytest.raises(RuntimeError):
                await cli.analyze_book("1513", None, 3, False)

            await asyncio.wait_for(cancelled.wait(), timeout=1)

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_failed_run_returns_error_code(self, collaborators, capsys):
        run = AnalysisRun(
            session_id=cli.SESSION_ID,
            document_id="0",
            state=RunState.ERRORED,
            error="Failed to fetch book: 404 Not Found",
        )
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=run)

        with patch.object(cli, "print_events", AsyncMock()), \
                patch.object(cli, "AnalysisOrchestrator", return_value=orchestrator):
            code = await cli.analyze_book("0", None, 3, False)

        assert code == 1
        assert "404 Not Found" in capsys.readouterr().out
