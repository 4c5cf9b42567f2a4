"""Structured progress events emitted while mining.

A sink is any callable taking one event.  Sinks observe the run; they never
influence it.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import IO, Union

TERMINATION_REASONS = ("no_frequent_items", "empty_level", "max_itemset_size")


@dataclass(frozen=True)
class ItemsDiscovered:
    n_items: int


@dataclass(frozen=True)
class TransactionsDiscovered:
    n_transactions: int


@dataclass(frozen=True)
class LevelCompleted:
    """One finished level of the breadth-first search.

    ``n_candidates`` is the generator output, ``n_after_pruning`` what survived
    the downward-closure check and ``n_frequent`` what met ``min_support``.
    Level 1 is seeded from item counts, so its first two counts equal the
    number of items.
    """

    level: int
    n_candidates: int
    n_after_pruning: int
    n_frequent: int
    seconds: float


@dataclass(frozen=True)
class MiningTerminated:
    level: int
    reason: str
    n_frequent_itemsets: int

    def __post_init__(self) -> None:
        if self.reason not in TERMINATION_REASONS:
            raise ValueError(f"Unknown termination reason {self.reason!r}; expected one of {TERMINATION_REASONS}.")


@dataclass(frozen=True)
class RulesGenerated:
    n_rules: int
    seconds: float


Event = Union[ItemsDiscovered, TransactionsDiscovered, LevelCompleted, MiningTerminated, RulesGenerated]
Sink = Callable[[Event], None]


class ProgressPrinter:
    """Print events as timestamped progress lines (what ``verbose > 0`` enables)."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.stream = stream

    def format(self, event: Event) -> str:
        if isinstance(event, ItemsDiscovered):
            msg = f"Found {event.n_items:,} distinct items."
        elif isinstance(event, TransactionsDiscovered):
            msg = f"Found {event.n_transactions:,} transactions."
        elif isinstance(event, LevelCompleted):
            msg = (
                f"Level {event.level}: {event.n_candidates:,} candidates, "
                f"{event.n_after_pruning:,} after pruning, {event.n_frequent:,} frequent "
                f"({event.seconds:.2f}s)."
            )
        elif isinstance(event, MiningTerminated):
            msg = (
                f"Search stopped at level {event.level} ({event.reason}); "
                f"{event.n_frequent_itemsets:,} frequent itemsets in total."
            )
        elif isinstance(event, RulesGenerated):
            msg = f"Generated {event.n_rules:,} rules in {event.seconds:.2f}s."
        else:
            msg = repr(event)
        return f"[{time.strftime('%X')}] {msg}"

    def __call__(self, event: Event) -> None:
        print(self.format(event), file=self.stream or sys.stdout)


class EventRecorder:
    """Keep every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Event]:
        return [e for e in self.events if isinstance(e, kind)]

    def __len__(self) -> int:
        return len(self.events)


def build_sink(diagnostics: Sink | Iterable[Sink] | None, verbose: int = 0) -> Sink | None:
    """Combine user sinks and the verbose printer into one callable (or ``None``)."""
    if diagnostics is None:
        sinks: list[Sink] = []
    elif callable(diagnostics):
        sinks = [diagnostics]
    else:
        sinks = list(diagnostics)
    if verbose:
        sinks.append(ProgressPrinter())
    if not sinks:
        return None
    if len(sinks) == 1:
        return sinks[0]

    def fan_out(event: Event) -> None:
        for sink in sinks:
            sink(event)

    return fan_out
