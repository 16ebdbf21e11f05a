"""Tests for keyprompt.stdin_buffer."""

from __future__ import annotations

import asyncio

import pytest

from keyprompt.stdin_buffer import ESC, StdinBuffer, sequence_status, split_sequences


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_buffer(timeout: float = 0.01) -> tuple[StdinBuffer, list[str]]:
    buf = StdinBuffer(timeout=timeout)
    data: list[str] = []
    buf.on_data(data.append)
    return buf, data


# ---------------------------------------------------------------------------
# Sequence detection
# ---------------------------------------------------------------------------


class TestSequenceStatus:
    def test_plain_text(self) -> None:
        assert sequence_status("a") == "plain"

    def test_lone_escape(self) -> None:
        assert sequence_status(ESC) == "incomplete"

    def test_csi_without_final_byte(self) -> None:
        assert sequence_status(f"{ESC}[1;5") == "incomplete"

    def test_csi_complete(self) -> None:
        assert sequence_status(f"{ESC}[A") == "complete"
        assert sequence_status(f"{ESC}[1;5C") == "complete"

    def test_ss3(self) -> None:
        assert sequence_status(f"{ESC}O") == "incomplete"
        assert sequence_status(f"{ESC}OP") == "complete"

    def test_osc_needs_terminator(self) -> None:
        assert sequence_status(f"{ESC}]0;title") == "incomplete"
        assert sequence_status(f"{ESC}]0;title\x07") == "complete"
        assert sequence_status(f"{ESC}]0;title{ESC}\\") == "complete"

    def test_meta_key(self) -> None:
        assert sequence_status(f"{ESC}x") == "complete"


class TestSplitSequences:
    def test_splits_characters(self) -> None:
        assert split_sequences("ab") == (["a", "b"], "")

    def test_splits_mixed_input(self) -> None:
        seqs, rest = split_sequences(f"a{ESC}[Ab{ESC}[B")
        assert seqs == ["a", f"{ESC}[A", "b", f"{ESC}[B"]
        assert rest == ""

    def test_keeps_incomplete_tail(self) -> None:
        seqs, rest = split_sequences(f"x{ESC}[")
        assert seqs == ["x"]
        assert rest == f"{ESC}["

    def test_delete_and_meta(self) -> None:
        seqs, rest = split_sequences(f"{ESC}[3~{ESC}b")
        assert seqs == [f"{ESC}[3~", f"{ESC}b"]
        assert rest == ""

    def test_osc_then_key(self) -> None:
        seqs, rest = split_sequences(f"{ESC}]0;t\x07q")
        assert seqs == [f"{ESC}]0;t\x07", "q"]
        assert rest == ""


# ---------------------------------------------------------------------------
# StdinBuffer
# ---------------------------------------------------------------------------


class TestStdinBuffer:
    def test_emits_complete_sequences_immediately(self) -> None:
        buf, data = make_buffer()
        buf.feed(f"q{ESC}[D")
        assert data == ["q", f"{ESC}[D"]
        assert buf.pending == ""

    def test_without_loop_incomplete_is_flushed(self) -> None:
        buf, data = make_buffer()
        buf.feed(ESC)
        assert data == [ESC]
        assert buf.pending == ""

    @pytest.mark.asyncio
    async def test_partial_escape_held_back(self) -> None:
        buf, data = make_buffer()
        buf.feed(ESC)
        assert data == []
        assert buf.pending == ESC
        buf.close()

    @pytest.mark.asyncio
    async def test_split_csi_across_chunks(self) -> None:
        buf, data = make_buffer()
        buf.feed(ESC)
        buf.feed("[A")
        assert data == [f"{ESC}[A"]
        assert buf.pending == ""

    @pytest.mark.asyncio
    async def test_timeout_flushes_lone_escape(self) -> None:
        buf, data = make_buffer(timeout=0.01)
        buf.feed(ESC)
        await asyncio.sleep(0.05)
        assert data == [ESC]
        assert buf.pending == ""

    @pytest.mark.asyncio
    async def test_flush_returns_pending_input(self) -> None:
        buf, data = make_buffer()
        buf.feed(f"{ESC}[")
        assert buf.flush() == [f"{ESC}["]
        assert buf.pending == ""
        assert data == []

    @pytest.mark.asyncio
    async def test_close_cancels_pending_flush(self) -> None:
        buf, data = make_buffer(timeout=0.01)
        buf.feed(ESC)
        buf.close()
        await asyncio.sleep(0.05)
        assert data == []

    def test_no_callback_is_fine(self) -> None:
        buf = StdinBuffer()
        buf.feed("abc")
        assert buf.pending == ""
