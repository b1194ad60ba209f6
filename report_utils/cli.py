"""Command line entry point for the static version of the lesson.

Usage
-----
pca-explained render --out report.html [--xlsx tables.xlsx] [--data bfi.csv]
pca-explained simulate --out bfi_simulated.csv [--respondents 2800]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pca_tools import DEFAULT_N_COMPONENTS, DEFAULT_SEED, configure_logging
from survey_utils import load_questionnaire, simulate_questionnaire

from .report_builder import build_report, write_report, write_tables

logger = logging.getLogger(__name__)


def _cmd_render(args: argparse.Namespace) -> int:
    data = load_questionnaire(Path(args.data)) if args.data else None
    sections = build_report(data=data, seed=args.seed, n_components=args.components)

    print(str(write_report(Path(args.out), sections=sections)))
    if args.xlsx:
        print(str(write_tables(Path(args.xlsx), sections=sections)))
    return 0


def _cmd_simulate(args: argparse.Namespace) -> int:
    df = simulate_questionnaire(n_respondents=args.respondents, seed=args.seed)
    out = Path(args.out)
    df.to_csv(out, index=False)
    logger.info("Wrote %d simulated respondents to %s", len(df), out)
    print(str(out))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", default=None,
                        help="Logging level (default: $PCA_EXPLAINED_LOG_LEVEL or WARNING)")

    p = argparse.ArgumentParser(prog="pca-explained", add_help=True)
    sp = p.add_subparsers(dest="cmd", required=True)

    pr = sp.add_parser("render", parents=[common], help="Render the lesson to a self-contained HTML file")
    pr.add_argument("--out", required=True, help="Output HTML path")
    pr.add_argument("--xlsx", default=None, help="Also write every table to this Excel file")
    pr.add_argument("--data", default=None, help="Questionnaire CSV (default: simulated data)")
    pr.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed")
    pr.add_argument("--components", type=int, default=DEFAULT_N_COMPONENTS,
                    help="Components kept in the case study")
    pr.set_defaults(func=_cmd_render)

    ps = sp.add_parser("simulate", parents=[common], help="Write a simulated questionnaire CSV")
    ps.add_argument("--out", required=True, help="Output CSV path")
    ps.add_argument("--respondents", type=int, default=2800, help="Number of respondents")
    ps.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed")
    ps.set_defaults(func=_cmd_simulate)

    ns = p.parse_args(argv)
    configure_logging(ns.log_level)
    return int(ns.func(ns))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
