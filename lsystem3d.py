#!/usr/bin/env python3
"""lsystem3d.py

Expands L-system grammars and interprets them as 3D turtle paths.

Key features:
- Iterative grammar expansion, plus a streaming variant for sampling.
- 3D turtle with pitch/yaw/roll accumulators and branching via push/pop.
- Lazy point output with explicit path-break markers between polylines.
- Aspect-preserving fit of the point cloud into a target box.
- Built-in catalog of classic curves and a presenter to browse/tweak them.

Run:
  python lsystem3d.py list
  python lsystem3d.py points "Koch snowflake" out.json -n 3
  python lsystem3d.py validate example/fractal_tree.json
  python lsystem3d.py --help
"""

from __future__ import annotations

import argparse
import dataclasses
import itertools
import json
import logging
import math
import os
import sys
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union, cast

import numpy as np

Point = tuple[float, float, float]

LOG_LEVEL_ENV_VAR = "LOG_LEVEL"

DEFAULT_MOVE_SYMBOLS = "FGHI"
DEFAULT_STEP_LENGTH = 10.0
DEFAULT_MAX_ITERATIONS = 9

TARGET_MIN: Point = (-100.0, -100.0, -100.0)
TARGET_MAX: Point = (100.0, 100.0, 100.0)


# -------------------------
# Errors / Validation
# -------------------------


class ConfigError(ValueError):
    pass


class UnbalancedBranchError(ConfigError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


def _as_float(x: Any, path: str) -> float:
    _require(isinstance(x, (int, float)), f"{path} must be a number")
    return float(x)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_bool(x: Any, path: str) -> bool:
    _require(isinstance(x, bool), f"{path} must be a boolean")
    return cast(bool, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


# -------------------------
# Logging
# -------------------------


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a stream handler, level taken from LOG_LEVEL."""

    log_level = os.getenv(LOG_LEVEL_ENV_VAR, "INFO").upper()
    level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        # Configured elsewhere; respect existing handlers.
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


logger = get_logger(__name__)


# -------------------------
# Data model
# -------------------------


class PathBreak:
    """Marker between two polylines in an interpreted point sequence."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "BREAK"


BREAK = PathBreak()

PathItem = Union[Point, PathBreak]


@dataclass(frozen=True)
class TurtleState:
    position: Point
    orientation: Point


@dataclass(frozen=True)
class Grammar:
    axiom: str
    # read-only view; not part of the hash
    rules: Mapping[str, str] = field(hash=False)
    # radians
    angle: float
    step_length: float = DEFAULT_STEP_LENGTH
    closed_path: bool = False
    move_symbols: str = DEFAULT_MOVE_SYMBOLS

    def __post_init__(self) -> None:
        _require(self.step_length > 0, "step_length must be > 0")
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    def generate_points(self, iterations: int) -> Iterator[PathItem]:
        return generate_points(self, iterations)


@dataclass
class CurveEntry:
    grammar: Grammar
    title: str = ""
    url: str | None = None
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    iterations: int = 1


# -------------------------
# Grammar expansion
# -------------------------


def expand(axiom: str, rules: Mapping[str, str], iterations: int) -> str:
    """Rewrite ``axiom`` through ``iterations`` generations of ``rules``.

    Symbols without a rule rewrite to themselves.
    """
    _require(iterations >= 0, "iterations must be >= 0")

    s = axiom
    for _ in range(iterations):
        s = "".join(rules.get(ch, ch) for ch in s)

    logger.debug(
        "Expanded %r over %d iterations to %d symbols", axiom, iterations, len(s)
    )
    return s


def stream_expand(
    axiom: str, rules: Mapping[str, str], iterations: int
) -> Iterator[str]:
    """Yield the symbols of ``expand(axiom, rules, iterations)`` one at a time.

    Uses an explicit stack of (string, index, depth) frames so the expanded
    string is never built.
    """
    _require(iterations >= 0, "iterations must be >= 0")
    return _stream_expand(axiom, rules, iterations)


def _stream_expand(
    axiom: str, rules: Mapping[str, str], iterations: int
) -> Iterator[str]:
    stack: list[tuple[str, int, int]] = [(axiom, 0, 0)]

    while stack:
        s, i, d = stack.pop()
        if i >= len(s):
            continue

        ch = s[i]
        stack.append((s, i + 1, d))

        if d < iterations and ch in rules:
            # Replacement goes on top of the continuation so it is
            # traversed first.
            stack.append((rules[ch], 0, d + 1))
        else:
            yield ch


# -------------------------
# Turtle interpreter
# -------------------------

# symbol -> (orientation axis, multiple of the base angle)
_TURNS: dict[str, tuple[int, float]] = {
    "+": (2, 1.0),
    "-": (2, -1.0),
    "<": (0, 1.0),
    ">": (0, -1.0),
    "|": (0, -2.0),
    "^": (1, 1.0),
    "&": (1, -1.0),
}


def _rotation_xyz(ax: float, ay: float, az: float) -> np.ndarray:
    """Rotation matrix of the intrinsic XYZ Euler composition."""
    cx, sx = math.cos(ax), math.sin(ax)
    cy, sy = math.cos(ay), math.sin(ay)
    cz, sz = math.cos(az), math.sin(az)
    rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rx @ ry @ rz


def _as_point(v: Any) -> Point:
    return (float(v[0]), float(v[1]), float(v[2]))


def interpret(
    symbols: Iterable[str],
    *,
    angle: float,
    step_length: float,
    closed_path: bool = False,
    move_symbols: str = DEFAULT_MOVE_SYMBOLS,
    resume_at_branch_point: bool = False,
) -> Iterator[PathItem]:
    """Walk ``symbols`` with a 3D turtle and lazily yield points and breaks.

    The turtle starts at the origin facing +Y. Every move symbol steps
    ``step_length`` along the heading given by the accumulated X/Y/Z angles
    and yields the new position. ``]`` restores the last saved state and
    yields ``BREAK``; with ``resume_at_branch_point`` the restored position
    is yielded right after it so the next polyline starts at the branch.

    Turtle commands:
      - ``+``/``-``: turn about Z by +/- angle
      - ``<``/``>``: turn about X by +/- angle
      - ``|``: turn about X by -2 * angle
      - ``^``/``&``: turn about Y by +/- angle
      - ``[``/``]``: push/pop (position, orientation)

    Anything else is ignored. ``UnbalancedBranchError`` is raised when ``]``
    finds an empty stack.
    """
    _require(step_length > 0, "step_length must be > 0")
    return _walk(
        symbols,
        angle=angle,
        step_length=step_length,
        closed_path=closed_path,
        move_symbols=frozenset(move_symbols),
        resume_at_branch_point=resume_at_branch_point,
    )


def _walk(
    symbols: Iterable[str],
    *,
    angle: float,
    step_length: float,
    closed_path: bool,
    move_symbols: frozenset[str],
    resume_at_branch_point: bool,
) -> Iterator[PathItem]:
    start = np.zeros(3)
    position = start.copy()
    orientation = np.zeros(3)
    forward = np.array([0.0, step_length, 0.0])
    stack: list[TurtleState] = []

    # Step vector for the current orientation; reset on every turn/pop.
    step: np.ndarray | None = None

    yield _as_point(position)

    for sym in symbols:
        if sym in move_symbols:
            if step is None:
                step = _rotation_xyz(*orientation) @ forward
            position = position + step
            yield _as_point(position)
            continue

        turn = _TURNS.get(sym)
        if turn is not None:
            axis, factor = turn
            orientation[axis] += factor * angle
            step = None
            continue

        if sym == "[":
            stack.append(TurtleState(_as_point(position), _as_point(orientation)))
            continue

        if sym == "]":
            if not stack:
                raise UnbalancedBranchError("']' encountered with empty stack")
            state = stack.pop()
            position = np.array(state.position)
            orientation = np.array(state.orientation)
            step = None
            yield BREAK
            if resume_at_branch_point:
                yield state.position
            continue

    if closed_path:
        yield _as_point(start)


def generate_points(grammar: Grammar, iterations: int) -> Iterator[PathItem]:
    """Expand ``grammar`` and interpret the result."""
    symbols = expand(grammar.axiom, grammar.rules, iterations)
    return interpret(
        symbols,
        angle=grammar.angle,
        step_length=grammar.step_length,
        closed_path=grammar.closed_path,
        move_symbols=grammar.move_symbols,
    )


# -------------------------
# Normalization
# -------------------------


def fit(
    items: Iterable[PathItem],
    target_min: Iterable[float],
    target_max: Iterable[float],
) -> list[PathItem]:
    """Scale and center the points of ``items`` into the target box.

    A single uniform scale is used so the aspect ratio is kept. Axes where
    the points have no extent do not constrain the scale. Breaks pass
    through unchanged.
    """
    lo = np.asarray(tuple(target_min), dtype=float)
    hi = np.asarray(tuple(target_max), dtype=float)
    _require(lo.shape == (3,) and hi.shape == (3,), "target box must be 3D")
    _require(
        bool(np.all(lo < hi)),
        "target_min must be strictly less than target_max on every axis",
    )

    out = list(items)
    points = [it for it in out if not isinstance(it, PathBreak)]
    if not points:
        return out

    cloud = np.asarray(points, dtype=float)
    cloud_min = cloud.min(axis=0)
    extent = cloud.max(axis=0) - cloud_min
    target = hi - lo

    usable = extent > 0
    scale = float(np.min(target[usable] / extent[usable])) if usable.any() else 1.0
    offset = lo - cloud_min * scale + (target - extent * scale) / 2
    fitted = iter(cloud * scale + offset)

    logger.debug("Fitting %d points with scale %g", len(points), scale)

    for i, it in enumerate(out):
        if not isinstance(it, PathBreak):
            out[i] = _as_point(next(fitted))
    return out


def split_polylines(items: Iterable[PathItem]) -> list[list[Point]]:
    """Cut a point sequence at breaks; empty runs are dropped."""
    polylines: list[list[Point]] = []
    current: list[Point] = []
    for it in items:
        if isinstance(it, PathBreak):
            if current:
                polylines.append(current)
            current = []
        else:
            current.append(it)
    if current:
        polylines.append(current)
    return polylines


# -------------------------
# Curve catalog
# -------------------------


def default_catalog() -> list[CurveEntry]:
    """Return fresh, independently mutable entries for the built-in curves."""
    return [
        CurveEntry(
            Grammar(
                axiom="F--F--F",
                rules={"F": "F+F--F+F"},
                angle=math.pi / 3,
                closed_path=True,
            ),
            title="Koch snowflake",
            url="https://en.wikipedia.org/wiki/Koch_snowflake",
        ),
        CurveEntry(
            Grammar(axiom="F", rules={"F": "F+F-F-F+F"}, angle=math.radians(85)),
            title="Cesaro fractal",
            url="http://mathworld.wolfram.com/CesaroFractal.html",
        ),
        CurveEntry(
            Grammar(axiom="F", rules={"F": "F+F-F-FF+F+F-F"}, angle=math.pi / 2),
            title="Quadratic type 2",
            url="https://en.wikipedia.org/wiki/Koch_snowflake#Variants_of_the_Koch_curve",
        ),
        CurveEntry(
            Grammar(
                axiom="A",
                rules={"A": "-BF+AFA+FB-", "B": "+AF-BFB-FA+"},
                angle=math.pi / 2,
            ),
            title="Hilbert curve",
            url="https://en.wikipedia.org/wiki/Hilbert_curve",
        ),
        CurveEntry(
            Grammar(
                axiom="X",
                rules={
                    "X": "XFYFX+F+YFXFY-F-XFYFX",
                    "Y": "YFXFY-F-XFYFX+F+YFXFY",
                },
                angle=math.pi / 2,
            ),
            title="Lindenmayer curve",
        ),
        CurveEntry(
            Grammar(
                axiom="F",
                rules={"F": "F-G--G+F++FF+G-", "G": "+F-GG--G-F++F+G"},
                angle=math.radians(60),
            ),
            title="Gosper curve",
            url="https://en.wikipedia.org/wiki/Gosper_curve",
        ),
        CurveEntry(
            Grammar(
                axiom="F-G-G",
                rules={"F": "F-G+F+G-F", "G": "GG"},
                angle=math.radians(120),
            ),
            title="Sierpinski triangle",
            url="https://en.wikipedia.org/wiki/Sierpinski_triangle",
        ),
        CurveEntry(
            Grammar(axiom="F", rules={"F": "G-F-G", "G": "F+G+F"}, angle=math.pi / 3),
            title="Sierpinski arrow head triangle",
            url="https://en.wikipedia.org/wiki/Sierpi%C5%84ski_arrowhead_curve",
        ),
        CurveEntry(
            Grammar(axiom="FX", rules={"X": "X+YF+", "Y": "-FX-Y"}, angle=math.pi / 2),
            title="Dragon curve",
            url="https://en.wikipedia.org/wiki/Dragon_curve",
            max_iterations=14,
        ),
        CurveEntry(
            Grammar(
                axiom="X",
                rules={"X": "F[-X][X]F[-X]+FX", "F": "FF"},
                angle=math.radians(25),
            ),
            title="Plant",
            url="https://en.wikipedia.org/wiki/L-system#Example_7:_Fractal_plant",
        ),
        CurveEntry(
            Grammar(
                axiom="A",
                rules={
                    "A": "[[[[F+F-F-F+F]G<G>G>G<G]H-H+H+H-H]I>I<I<I>I]",
                    "F": "F+F-F-F+F",
                    "G": "G<G>G>G<G",
                    "H": "H-H+H+H-H",
                    "I": "I>I<I<I>I",
                },
                angle=math.pi / 2,
            ),
            title="Koch curve 3d",
            url="https://github.com/Hiestaa/3D-Lsystem/blob/master/lsystem/KochCurve3D.py",
        ),
    ]


def find_entry(catalog: list[CurveEntry], key: str) -> CurveEntry:
    """Look up a catalog entry by index or case-insensitive title."""
    if key.isdecimal():
        i = int(key)
        _require(0 <= i < len(catalog), f"no curve at index {i}")
        return catalog[i]
    for entry in catalog:
        if entry.title.lower() == key.lower():
            return entry
    raise ConfigError(f"Unknown curve '{key}'")


def parse_rules(text: str) -> dict[str, str]:
    """Parse rules written as ``"F => F+F; G => GG"``."""
    rules: dict[str, str] = {}
    for part in text.split("; "):
        if not part.strip():
            continue
        _require(" => " in part, f"rule '{part}' must look like 'X => production'")
        lhs, rhs = part.split(" => ", 1)
        lhs = lhs.strip()
        _require(len(lhs) == 1, f"rule symbol '{lhs}' must be a single character")
        rules[lhs] = rhs.strip()
    return rules


def format_rules(rules: Mapping[str, str]) -> str:
    return "; ".join(f"{k} => {v}" for k, v in rules.items())


class Presenter:
    """Browse the catalog and tweak the selected curve.

    Grammars stay immutable; edits swap a new grammar into the entry.
    """

    def __init__(self, catalog: list[CurveEntry] | None = None) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()
        _require(len(self.catalog) > 0, "catalog must not be empty")
        self._index = 0
        self.debug_mode = False
        self.debug_step = 1

    @property
    def current(self) -> CurveEntry:
        return self.catalog[self._index]

    def generate_points(self) -> list[PathItem]:
        entry = self.current
        points = fit(
            entry.grammar.generate_points(entry.iterations), TARGET_MIN, TARGET_MAX
        )
        if self.debug_mode:
            return points[: max(self.debug_step, 0)]
        return points

    def switch(self, direction: int) -> None:
        i = self._index + direction
        if i < 0:
            i = len(self.catalog) - 1
        elif i >= len(self.catalog):
            i = 0
        self._index = i
        self.debug_mode = False
        self.debug_step = 0

    def change_iterations(self, increment: int) -> None:
        entry = self.current
        n = entry.iterations + increment
        entry.iterations = min(max(n, 0), entry.max_iterations)

    def change_angle(self, delta: float) -> None:
        grammar = self.current.grammar
        angle = math.radians(round(math.degrees(grammar.angle + delta)))
        if angle < 0:
            angle += 2 * math.pi
        if angle > 2 * math.pi:
            angle -= 2 * math.pi
        self.current.grammar = dataclasses.replace(grammar, angle=angle)

    def apply_changes(
        self,
        *,
        axiom: str | None = None,
        rules: Mapping[str, str] | None = None,
        angle: float | None = None,
        iterations: int | None = None,
    ) -> None:
        entry = self.current
        changes: dict[str, Any] = {}
        if axiom is not None:
            changes["axiom"] = axiom
        if rules is not None:
            changes["rules"] = dict(rules)
        if angle is not None:
            changes["angle"] = angle
        if changes:
            entry.grammar = dataclasses.replace(entry.grammar, **changes)
        if iterations is not None:
            _require(iterations >= 0, "iterations must be >= 0")
            entry.iterations = iterations

    def increase_debug_step(self) -> None:
        if self.debug_mode:
            self.debug_step += 1

    def decrease_debug_step(self) -> None:
        if self.debug_mode and self.debug_step > 0:
            self.debug_step -= 1


# -------------------------
# Config parsing
# -------------------------


def parse_config(obj: dict[str, Any]) -> CurveEntry:
    obj = _as_dict(obj, "root")

    name = _as_str(obj.get("name", "L-System"), "name")
    axiom = _as_str(obj.get("axiom", ""), "axiom")
    _require(len(axiom) > 0, "axiom must be non-empty")

    rules_obj = _as_dict(obj.get("rules", {}), "rules")
    rules: dict[str, str] = {}
    for k, v in rules_obj.items():
        _require(
            isinstance(k, str) and len(k) == 1,
            "rules keys must be single-character strings",
        )
        rules[k] = _as_str(v, f"rules['{k}']")

    angle_deg = _as_float(obj.get("angle", 90), "angle")
    step = _as_float(obj.get("step", DEFAULT_STEP_LENGTH), "step")
    _require(step > 0, "step must be > 0")
    closed_path = _as_bool(obj.get("closed_path", False), "closed_path")
    move_symbols = _as_str(
        obj.get("move_symbols", DEFAULT_MOVE_SYMBOLS), "move_symbols"
    )

    iterations = _as_int(obj.get("iterations", 1), "iterations")
    _require(iterations >= 0, "iterations must be >= 0")
    max_iterations = _as_int(
        obj.get("max_iterations", DEFAULT_MAX_ITERATIONS), "max_iterations"
    )
    _require(max_iterations >= 0, "max_iterations must be >= 0")

    url = obj.get("url")
    if url is not None:
        url = _as_str(url, "url")

    grammar = Grammar(
        axiom=axiom,
        rules=rules,
        angle=math.radians(angle_deg),
        step_length=step,
        closed_path=closed_path,
        move_symbols=move_symbols,
    )
    return CurveEntry(
        grammar,
        title=name,
        url=url,
        max_iterations=max_iterations,
        iterations=iterations,
    )


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def dump_json(obj: dict[str, Any], path: str) -> None:
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
        f.write("\n")


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
INPUT JSON SYNTAX (points, validate)

A grammar config is a single JSON object:

  name: string (optional)
      A human-readable title.

  axiom: string (required)
      The initial word.

  rules: object mapping single-character string -> string (optional)
      Production rules. Symbols without a rule rewrite to themselves.

  angle: number degrees (default 90)
  step: number > 0 (default 10)
  closed_path: boolean (default false)
      Append the start point after the last symbol.
  iterations: integer >= 0 (default 1)
  max_iterations: integer >= 0 (default 9)
  move_symbols: string (default "FGHI")
      Every symbol that draws forward.
  url: string (optional)

Turtle commands

  + -   turn about Z          < >   turn about X
  |     turn about X by -2x   ^ &   turn about Y
  [ ]   push / pop position and orientation

OUTPUT (points)

  {"name": ..., "iterations": N, "polylines": [[[x, y, z], ...], ...]}

  By default points are fitted into the cube -100..100 on every axis.

Example (Koch snowflake):

    {
      "name": "Koch snowflake",
      "axiom": "F--F--F",
      "rules": {"F": "F+F--F+F"},
      "angle": 60,
      "closed_path": true,
      "iterations": 3
    }
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsystem3d",
        description="Expand L-systems into 3D turtle polylines.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="List the built-in curves.")

    pp = sub.add_parser(
        "points",
        help="Write the polylines of a curve to a JSON file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pp.add_argument(
        "source", help="Built-in curve title or index, or a JSON config path."
    )
    pp.add_argument("output", help="Path to write the JSON output.")
    pp.add_argument(
        "-n",
        "--iterations",
        type=int,
        default=None,
        help="Iteration count (default: the curve's own; capped at its maximum).",
    )
    pp.add_argument(
        "--no-fit",
        action="store_true",
        help="Keep raw turtle coordinates instead of fitting into -100..100.",
    )
    pp.add_argument(
        "--resume-at-branch-point",
        action="store_true",
        help="Start each polyline after a ']' at the restored branch point.",
    )

    pv = sub.add_parser(
        "validate",
        help="Validate a JSON config and print a brief summary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pv.add_argument("config", help="Path to the input JSON config.")

    return p


# -------------------------
# Commands
# -------------------------


def _resolve_source(source: str) -> CurveEntry:
    # Built-in curves win over files of the same name.
    if not source.endswith(".json"):
        try:
            return find_entry(default_catalog(), source)
        except ConfigError:
            if not os.path.exists(source):
                raise
    return parse_config(load_json(source))


def cmd_list() -> None:
    for i, entry in enumerate(default_catalog()):
        url = f"  {entry.url}" if entry.url else ""
        print(f"{i:2d}  {entry.title} (max {entry.max_iterations}){url}")


def cmd_points(
    source: str,
    output_path: str,
    iterations: int | None,
    no_fit: bool,
    resume_at_branch_point: bool,
) -> None:
    entry = _resolve_source(source)
    n = entry.iterations if iterations is None else iterations
    _require(n >= 0, "iterations must be >= 0")
    if n > entry.max_iterations:
        logger.warning(
            "Capping iterations for %s at %d (requested %d)",
            entry.title,
            entry.max_iterations,
            n,
        )
        n = entry.max_iterations

    g = entry.grammar
    items: Iterable[PathItem] = interpret(
        expand(g.axiom, g.rules, n),
        angle=g.angle,
        step_length=g.step_length,
        closed_path=g.closed_path,
        move_symbols=g.move_symbols,
        resume_at_branch_point=resume_at_branch_point,
    )
    if not no_fit:
        items = fit(items, TARGET_MIN, TARGET_MAX)

    polylines = split_polylines(items)
    dump_json(
        {
            "name": entry.title,
            "iterations": n,
            "polylines": [[list(p) for p in pl] for pl in polylines],
        },
        output_path,
    )
    logger.info("Wrote %d polylines to %s", len(polylines), output_path)


_VALIDATE_SYMBOL_LIMIT = 10_000


def cmd_validate(config_path: str) -> None:
    entry = parse_config(load_json(config_path))
    g = entry.grammar

    print(f"name: {entry.title}")
    print(f"axiom length: {len(g.axiom)}")
    print(f"iterations: {entry.iterations} (max {entry.max_iterations})")
    print(f"rules: {len(g.rules)}")
    print(
        f"turtle: angle={math.degrees(g.angle):g}deg step={g.step_length:g} "
        f"closed_path={g.closed_path} moves={g.move_symbols}"
    )

    # Bounded sample: catches unbalanced branches without paying for
    # exponential blow-up.
    raw = stream_expand(g.axiom, g.rules, entry.iterations)
    bounded = list(itertools.islice(raw, _VALIDATE_SYMBOL_LIMIT))
    truncated = len(bounded) == _VALIDATE_SYMBOL_LIMIT
    items = list(
        interpret(
            bounded,
            angle=g.angle,
            step_length=g.step_length,
            closed_path=g.closed_path,
            move_symbols=g.move_symbols,
        )
    )
    breaks = sum(1 for it in items if isinstance(it, PathBreak))
    sym_label = f"{len(bounded)}+" if truncated else str(len(bounded))
    print(f"symbols (sampled): {sym_label}")
    print(f"points: {len(items) - breaks}")
    print(f"breaks: {breaks}")
    if truncated:
        print(
            f"warning: expansion exceeds {_VALIDATE_SYMBOL_LIMIT} symbols; "
            "geometry stats are based on the first portion only"
        )


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    try:
        if args.cmd == "list":
            cmd_list()
        elif args.cmd == "points":
            cmd_points(
                args.source,
                args.output,
                args.iterations,
                args.no_fit,
                args.resume_at_branch_point,
            )
        elif args.cmd == "validate":
            cmd_validate(args.config)
        else:
            raise AssertionError("unreachable")
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
