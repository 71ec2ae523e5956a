# src/fastfib/display.py
"""
Reporting for a computed F(N): digit count, full number or head/tail
preview, optional save, and the performance summary.
"""
from __future__ import annotations

import time
from dataclasses import dataclass

from colorama import Fore, Style

from fastfib.bigint import BigInt, leading_digits, num_digits, to_decimal, trailing_digits
from fastfib.engine import DoublingTrace
from fastfib.fmt import format_duration, format_rate, group_thousands
from fastfib.output_manager import OutputManager, save_result
from fastfib.runtime import CFG


@dataclass
class ResultPreview:
    n: int
    digits: int
    full: str | None = None    # complete decimal text, when it was converted
    head: str | None = None
    tail: str | None = None
    approximate_head: bool = False  # head computed arithmetically ("~")


def build_preview(n: int, value: BigInt, *, save: bool = False) -> ResultPreview:
    """
    Decide how much of F(n) to render.

    Huge results that are not being saved never get a full decimal
    conversion: the ends come from // and % by powers of ten.
    """
    full_limit = int(CFG("DISPLAY.FULL_DIGITS"))
    k = int(CFG("DISPLAY.PREVIEW_DIGITS"))
    large = int(CFG("DISPLAY.LARGE_RESULT_DIGITS"))

    d = num_digits(value)
    if d > large and not save:
        head = leading_digits(value, k, ndigits=d)
        tail = trailing_digits(value, k)
        return ResultPreview(
            n=n,
            digits=d,
            head=to_decimal(head),
            tail=to_decimal(tail).zfill(k),
            approximate_head=True,
        )

    text = to_decimal(value)
    if d <= full_limit:
        return ResultPreview(n=n, digits=d, full=text)
    return ResultPreview(n=n, digits=d, full=text, head=text[:k], tail=text[-k:])


def print_digit_count(preview: ResultPreview, *, om: OutputManager) -> None:
    om.write(f"{Fore.CYAN}F({preview.n}){Style.RESET_ALL} has {group_thousands(preview.digits)} digits")


def print_result(preview: ResultPreview, *, om: OutputManager) -> None:
    if preview.head is None:
        om.write(f"Full number: {preview.full}")
        return
    k = len(preview.tail or "")
    label = f"First ~{k} digits:" if preview.approximate_head else f"First {k} digits:"
    om.write(f"{label:<18} {preview.head}")
    om.write(f"{f'Last {k} digits:':<18} {preview.tail}")


def report_result(
    n: int,
    value: BigInt,
    *,
    om: OutputManager,
    save: bool = False,
    output_dir: str | None = None,
) -> tuple[ResultPreview, float]:
    """Print (and optionally save) F(n). Returns the preview and the seconds spent on I/O."""
    start = time.perf_counter()
    preview = build_preview(n, value, save=save)
    print_digit_count(preview, om=om)

    if save and preview.full is not None:
        om.write(f"Writing to file {Style.DIM}Fibonacci_{n}.txt{Style.RESET_ALL}...", end=" ")
        try:
            path = save_result(n, preview.full, output_dir)
        except OSError as e:
            om.write(f"{Fore.RED}failed.{Style.RESET_ALL} Couldn't create file: {e}")
        else:
            om.write(f"Number saved to: {path}")

    print_result(preview, om=om)
    return preview, time.perf_counter() - start


def print_performance(digits: int, compute_s: float, io_s: float, *, om: OutputManager) -> None:
    om.write()
    om.write(f"{Style.BRIGHT}Performance summary:{Style.RESET_ALL}")
    om.write(f"  Computation: {format_duration(compute_s)} ({format_rate(digits, compute_s)})")
    if io_s > 0.001:
        om.write(f"  System(I/O): {format_duration(io_s)}")


def format_trace(trace: DoublingTrace) -> str:
    forked = len(trace.forked_levels)
    return (
        f"strategy={trace.strategy} levels={trace.levels} "
        f"forked={forked}" + (f" (from level {trace.forked_levels[0]})" if forked else "")
    )
