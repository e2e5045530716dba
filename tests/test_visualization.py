"""Tests for static map rendering."""

from __future__ import annotations

from pathlib import Path

import pytest

from component_map.analysis.visualization import plot_component_map


def test_plot_component_map(tmp_path: Path) -> None:
    pytest.importorskip("matplotlib")

    output = plot_component_map(
        {"ULSHIP": ["AEAPS", "ULDEC"], "ULDEC": ["UMGM"], "ULAPY": ["FRIES"]},
        tmp_path / "figures" / "loans.png",
        statuses={"ULDEC": "incident"},
        highlight="UMGM",
    )

    assert output.exists()
    assert output.stat().st_size > 0


def test_plot_empty_map_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        plot_component_map({}, tmp_path / "empty.png")
