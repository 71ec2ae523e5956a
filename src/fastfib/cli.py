# src/fastfib/cli.py

"""
fastfib - exact Fibonacci numbers by fast doubling

Description:
    Computes F(N) for N up to the billions with gmpy2 integers, using the
    fast-doubling identities and a two-way fork-join per level for large N.
    Prints the digit count and the number (or its first/last digits),
    optionally saves it to Fibonacci_<N>.txt, and reports timings.

usage: see fastfib -h
"""

from __future__ import annotations

import argparse
import dataclasses
import faulthandler
import sys
import textwrap
import threading
import time
import traceback
from importlib.resources import files as pkg_files

from colorama import Fore, Style
from colorama import init as colorama_init

from fastfib import __version__ as _ver
from fastfib import config as CONFIG
from fastfib.display import format_trace, print_performance, report_result
from fastfib.engine import STRATEGIES, EngineConfig, FastDoublingEngine
from fastfib.expreval import parse_index
from fastfib.fmt import format_duration
from fastfib.output_manager import OutputManager
from fastfib.runtime import APPLY, CFG, ensure_runtime_deps
from fastfib.runtime import current as _rt_current
from fastfib.scheduler import MEASURES
from fastfib.utility import UserInputError, flatten_dotted, typename, validate_index
from fastfib.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

VERIFY_LIMIT = 100_000


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    # Always show full Python tracebacks
    faulthandler.enable()

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    # Fork-join workers run in threads
    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    if msg.startswith("Invalid input:"):
        msg = msg.replace("Invalid input:", f"{Fore.RED}Invalid input:{Style.RESET_ALL}", 1)
    elif not msg.startswith("Error:"):
        msg = f"{Fore.RED}Error:{Style.RESET_ALL} {msg}"
    print(msg, file=sys.stderr)


def _debug(msg: str) -> None:
    print(f"{Style.DIM}[debug]{Style.RESET_ALL} {msg}", file=sys.stderr)


def _select_profile_name(explicit: str | None) -> str:
    """
    Precedence:
      1) explicit --profile
      2) last used (from workspace)
      3) 'default'
    """
    if explicit:
        return explicit
    last = CONFIG.read_current_profile()
    if last and CONFIG.has_profile(last):
        return last
    return "default"


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init        Create the workspace and copy the packaged profiles if missing.
      where       Show the workspace and package paths.
      profiles    List available profiles.

    examples:
      fastfib                 # compute F(20000000), don't save
      fastfib -s              # compute F(20000000), save to file
      fastfib -s 1000000      # compute F(1000000), save to file
      fastfib 100             # compute F(100), don't save
      fastfib 2**32 --threshold 0 --measure digits
    """)

    p = argparse.ArgumentParser(
        prog="fastfib",
        description="Exact Fibonacci numbers by fast doubling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("n", nargs="?", default=None, metavar="N",
                   help="index to compute (default from profile: 20000000); accepts 2**30, 2e7, 1_000_000")
    p.add_argument("-s", "--save", action="store_true", help="Save the result to Fibonacci_<N>.txt")
    p.add_argument("--output-dir", default=None, help="Directory for --save (default: profile OUTPUT.OUTPUT_DIR or cwd)")
    p.add_argument("--output", default=None, help="Append the report to this file (also prints unless --quiet)")
    p.add_argument("--profile", default=None, help="Profile name from the workspace profiles/ folder")
    p.add_argument("--strategy", choices=STRATEGIES, default=None, help="recursive halving or iterative bit scan")
    p.add_argument("--threshold", type=int, default=None,
                   help="fork-join threshold (0 = always fork, -1 = never fork)")
    p.add_argument("--measure", choices=MEASURES, default=None,
                   help="what the threshold is compared with: level index, target N or operand digits")
    p.add_argument("--verify", action="store_true",
                   help=f"cross-check the result with sympy (N <= {VERIFY_LIMIT})")
    p.add_argument("--quiet", action="store_true", help="Suppress screen output (errors still shown)")
    p.add_argument("--debug", action="store_true", help="Show profile keys, engine trace and full tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except MemoryError:
        # No partial result exists; the computation is lost
        print(f"{Fore.RED}Fatal:{Style.RESET_ALL} out of memory while computing. "
              "Try a smaller N.", file=sys.stderr)
        return 1
    except Exception as e:
        debug = "--debug" in (argv if argv is not None else sys.argv)
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


def _apply_profile(explicit: str | None, debug: bool) -> str:
    profile_name = _select_profile_name(explicit)
    if explicit and not CONFIG.has_profile(explicit):
        names = ", ".join(nm for nm, _ in CONFIG.list_profiles_with_descriptions())
        raise UserInputError(f"unknown profile '{explicit}'. Available profiles: {names or '(none)'}")

    selected = CONFIG.load_settings(profile_name)
    APPLY(selected)
    if explicit:
        CONFIG.write_current_profile(explicit)

    if debug:
        _debug(f"active profile: {selected.name} ({selected.description})")
        if selected._source:
            _debug(f"profile file: {selected._source}")
        flat = flatten_dotted(selected.as_dict())
        for k in sorted(flat, key=str.lower):
            v = CFG(k)
            _debug(f"    {k:.<40} {v!r} ({typename(v)})")
    return profile_name


def _engine_config(args) -> EngineConfig:
    try:
        cfg = EngineConfig.from_runtime()
    except (TypeError, ValueError) as e:
        raise UserInputError(f"ENGINE settings: {e}") from None
    overrides = {}
    if args.strategy:
        overrides["strategy"] = args.strategy
    if args.measure:
        overrides["measure"] = args.measure
    if args.threshold is not None:
        if args.threshold < -1:
            raise UserInputError("Invalid input: --threshold must be >= 0, or -1 to disable forking.")
        overrides["threshold"] = None if args.threshold == -1 else args.threshold
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def _verify(n: int, value) -> bool:
    from sympy import fibonacci as sympy_fibonacci  # noqa: PLC0415  (sympy import is slow)

    return int(sympy_fibonacci(n)) == int(value)


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)

    _install_loud_error_handlers(args.debug)

    if not ensure_runtime_deps(strict=True):
        return 1

    if args.n == "init":
        ws, copied = seed_workspace(overwrite=False)
        print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied}")
        return 0
    if args.n == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('fastfib')}")
        return 0

    # Ensure a first-run workspace seed silently
    ensure_workspace_seeded()

    if args.n == "profiles":
        for nm, desc in CONFIG.list_profiles_with_descriptions():
            print(f"  {Fore.CYAN}{nm:<16}{Style.RESET_ALL} {desc}")
        return 0

    _apply_profile(args.profile, args.debug)
    if rt.debug and not args.debug:
        _install_loud_error_handlers(True)

    n = parse_index(args.n) if args.n is not None else validate_index(int(CFG("BEHAVIOUR.DEFAULT_N")))
    engine = FastDoublingEngine(_engine_config(args))
    output_dir = args.output_dir if args.output_dir is not None else (CFG("OUTPUT.OUTPUT_DIR") or None)

    with OutputManager(output_file=args.output, quiet=args.quiet) as om:
        om.write(f"Computing F({n})...")
        if args.save:
            om.write("Result will be saved to file.")
        om.write()
        if rt.debug:
            c = engine.config
            _debug(f"engine: strategy={c.strategy} threshold={c.threshold} measure={c.measure}")

        start = time.perf_counter()
        pair, trace = engine.compute_traced(n)
        elapsed = time.perf_counter() - start

        om.write(f"Computation completed in {format_duration(elapsed)}")
        if rt.debug:
            _debug(format_trace(trace))

        if args.verify:
            if n > VERIFY_LIMIT:
                om.write(f"{Fore.YELLOW}Verification skipped:{Style.RESET_ALL} N > {VERIFY_LIMIT}.")
            elif _verify(n, pair.a):
                om.write(f"{Fore.GREEN}Verified{Style.RESET_ALL} against sympy.fibonacci.")
            else:
                om.write(f"{Fore.RED}Verification FAILED{Style.RESET_ALL} against sympy.fibonacci.")
                return 1

        preview, io_s = report_result(n, pair.a, om=om, save=args.save, output_dir=output_dir)
        print_performance(preview.digits, elapsed, io_s, om=om)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
