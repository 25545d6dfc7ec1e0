"""Command line front end: run the analysis over exported tables.

Usage:
    performance-analyzer run --catalog question_db.csv --responses responses.csv --out-dir out/
    performance-analyzer check --catalog question_db.csv
    performance-analyzer init-config settings.json --classification classification.csv
    performance-analyzer sync --url https://script.google.com/... --output responses.csv
    performance-analyzer report --ledger out/progress_master.csv --catalog question_db.csv --exam-scores out/exam_scores.csv --out-dir reports/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .catalog import QuestionCatalog, all_sub_unit_paths, build_classification_tree, classification_order
from .config import AnalysisConfig, load_config, save_config
from .invariants import run_catalog_invariants
from .io import (
    export_dataframe,
    export_tables,
    exam_scores_to_frame,
    ledger_to_frame,
    load_ledger,
    load_transaction_log,
    question_stats_to_frame,
    read_rows,
    read_table,
    transactions_to_frame,
)
from .metrics import UNASSIGNED_GRADE, grade_roster, major_unit_breakdown, score_distribution, student_overview, unit_breakdown
from .pipeline import run_pipeline
from .plots import exam_score_histogram, mastery_bar, question_error_bar, unit_bar, write_figure
from .sheets import SheetClient, SheetSyncError

logger = logging.getLogger(__name__)


def _resolve_scope(config: AnalysisConfig, catalog: QuestionCatalog, classification: Optional[Path]) -> AnalysisConfig:
    if config.selected_sub_units:
        return config
    if classification is not None:
        paths = all_sub_unit_paths(build_classification_tree(read_rows(classification)))
        logger.info("No scope selected; using all %d units from %s", len(paths), classification)
    else:
        paths = catalog.sub_unit_paths()
        logger.info("No scope selected; using all %d units in the catalog", len(paths))
    return config.with_scope(paths)


def cmd_run(args: argparse.Namespace) -> int:
    catalog = QuestionCatalog.from_records(read_rows(args.catalog))
    config = _resolve_scope(load_config(args.config) if args.config else AnalysisConfig(), catalog, args.classification)

    result = run_pipeline(
        catalog,
        read_rows(args.responses),
        read_rows(args.textbook) if args.textbook else [],
        prior_log=load_transaction_log(args.prior_log) if args.prior_log else [],
        prior_ledger=load_ledger(args.prior_ledger) if args.prior_ledger else [],
        config=config,
    )

    tables = {
        "transaction_log": transactions_to_frame(result.transaction_log),
        "progress_master": ledger_to_frame(result.ledger),
        "exam_scores": exam_scores_to_frame(result.exam_scores),
    }
    for exam_id, report in result.exam_reports.items():
        if not report.is_empty:
            tables[f"question_stats_{exam_id}"] = question_stats_to_frame(report.question_stats)
    export_tables(tables, args.out_dir)

    print(
        f"{result.new_transactions} new transactions, {len(result.ledger)} mastery records, "
        f"{len(result.exam_scores)} exam results written to {args.out_dir}"
    )
    if result.skipped_exams:
        print(f"Skipped exams without catalog questions: {', '.join(result.skipped_exams)}", file=sys.stderr)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    results = run_catalog_invariants(read_table(args.catalog))
    for check in results:
        status = "ok" if check["ok"] else "FAIL"
        print(f"{status:4}  {check['name']}: {check['detail']}")
    return 0 if all(check["ok"] for check in results) else 1


def cmd_init_config(args: argparse.Namespace) -> int:
    config = AnalysisConfig()
    if args.classification:
        config = config.with_scope(all_sub_unit_paths(build_classification_tree(read_rows(args.classification))))
    save_config(config, args.path)
    print(f"Settings written to {args.path}")
    return 0


QUESTION_STATS_PREFIX = "question_stats_"


def cmd_report(args: argparse.Namespace) -> int:
    catalog = QuestionCatalog.from_records(read_rows(args.catalog))
    ledger_df = ledger_to_frame(load_ledger(args.ledger))
    order = classification_order(read_rows(args.classification)) if args.classification else None

    overview = student_overview(ledger_df)
    if args.responses:
        roster = grade_roster(read_rows(args.responses))
        overview["grade"] = overview["student_id"].map(roster).fillna(UNASSIGNED_GRADE)
    tables = {"student_overview": overview}
    figures = {}

    students = args.student or list(overview["student_id"])
    for student in students:
        units = unit_breakdown(ledger_df, catalog, student, order=order)
        tables[f"units_{student}"] = units
        tables[f"major_units_{student}"] = major_unit_breakdown(units)
        figures[f"mastery_{student}.html"] = mastery_bar(ledger_df, student)
        figures[f"units_{student}.html"] = unit_bar(units)

    if args.exam_scores:
        scores_df = read_table(args.exam_scores)
        for exam_id, subset in scores_df.groupby("시험 ID", sort=True):
            dist = score_distribution(subset)
            tables[f"score_distribution_{exam_id}"] = dist
            figures[f"score_distribution_{exam_id}.html"] = exam_score_histogram(dist, str(exam_id))

    for path in args.question_stats:
        exam_id = path.stem[len(QUESTION_STATS_PREFIX) :] if path.stem.startswith(QUESTION_STATS_PREFIX) else path.stem
        figures[f"question_errors_{exam_id}.html"] = question_error_bar(read_table(path))

    export_tables(tables, args.out_dir)
    for filename, fig in figures.items():
        write_figure(fig, args.out_dir, filename)

    print(f"{len(tables)} tables and {len(figures)} charts for {len(students)} students written to {args.out_dir}")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    with SheetClient(max_retries=args.retries) as client:
        rows = client.fetch(args.url)
    export_dataframe(pd.DataFrame(rows), args.output)
    print(f"{len(rows)} rows written to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="performance-analyzer", description="Student performance analysis over spreadsheet exports")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Build transactions, mastery ledger and exam reports")
    run.add_argument("--catalog", type=Path, required=True, help="Question catalog CSV/JSON")
    run.add_argument("--responses", type=Path, required=True, help="Exam responses CSV/JSON")
    run.add_argument("--textbook", type=Path, help="Textbook responses CSV/JSON")
    run.add_argument("--prior-log", type=Path, help="Transaction log from a previous run")
    run.add_argument("--prior-ledger", type=Path, help="Mastery ledger from a previous run")
    run.add_argument("--config", type=Path, help="Analysis settings JSON")
    run.add_argument("--classification", type=Path, help="Unit taxonomy CSV, default scope when settings select none")
    run.add_argument("--out-dir", type=Path, default=Path("out"), help="Where to write result tables")
    run.set_defaults(func=cmd_run)

    check = sub.add_parser("check", help="Report catalog data-quality problems")
    check.add_argument("--catalog", type=Path, required=True)
    check.set_defaults(func=cmd_check)

    init = sub.add_parser("init-config", help="Write default analysis settings")
    init.add_argument("path", type=Path)
    init.add_argument("--classification", type=Path, help="Select every unit of this taxonomy")
    init.set_defaults(func=cmd_init_config)

    report = sub.add_parser("report", help="Unit roll-ups, overview, score distributions and charts")
    report.add_argument("--ledger", type=Path, required=True, help="Mastery ledger written by `run`")
    report.add_argument("--catalog", type=Path, required=True, help="Question catalog CSV/JSON")
    report.add_argument("--classification", type=Path, help="Unit taxonomy CSV, orders the unit tables")
    report.add_argument("--responses", type=Path, help="Exam responses, adds each student's grade to the overview")
    report.add_argument("--exam-scores", type=Path, help="Exam scores written by `run`")
    report.add_argument("--question-stats", type=Path, nargs="*", default=[], help="question_stats_<exam>.csv files written by `run`")
    report.add_argument("--student", action="append", help="Limit per-student tables to these students (repeatable)")
    report.add_argument("--out-dir", type=Path, default=Path("reports"), help="Where to write tables and charts")
    report.set_defaults(func=cmd_report)

    sync = sub.add_parser("sync", help="Download rows from a sheet web-app URL")
    sync.add_argument("--url", required=True)
    sync.add_argument("--output", type=Path, required=True)
    sync.add_argument("--retries", type=int, default=2)
    sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ValueError, SheetSyncError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
