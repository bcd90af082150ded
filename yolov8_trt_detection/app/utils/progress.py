"""Progress reporting for model loading."""
from __future__ import annotations

from typing import List, Optional, Sequence

from tqdm import tqdm

LOAD_STAGES: Sequence[str] = ("validate", "load", "ready")


class ProgressBar:
    """Callable progress hook that advances a tqdm bar once per loading stage."""

    def __init__(self, stages: Sequence[str] = LOAD_STAGES, desc: str = "Loading model", disable: bool = False) -> None:
        self.stages = list(stages)
        self._bar: Optional[tqdm] = tqdm(total=len(self.stages), desc=desc, unit="step", disable=disable)
        self.seen: List[str] = []

    def __call__(self, stage: str) -> None:
        if self._bar is None:
            return
        self.seen.append(stage)
        self._bar.set_postfix_str(stage)
        self._bar.update(1)
        if len(self.seen) >= len(self.stages):
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
