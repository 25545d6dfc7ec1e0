import json

import pandas as pd

from performance_analyzer.cli import main


def test_run_writes_result_tables(tmp_path, sample_csv_paths):
    out_dir = tmp_path / "out"
    code = main(
        [
            "run",
            "--catalog",
            str(sample_csv_paths["catalog"]),
            "--responses",
            str(sample_csv_paths["responses"]),
            "--textbook",
            str(sample_csv_paths["textbook"]),
            "--classification",
            str(sample_csv_paths["classification"]),
            "--out-dir",
            str(out_dir),
        ]
    )

    assert code == 0
    for name in ["transaction_log.csv", "progress_master.csv", "exam_scores.csv", "question_stats_M1.csv"]:
        assert (out_dir / name).exists()
    scores = pd.read_csv(out_dir / "exam_scores.csv", encoding="utf-8-sig")
    assert list(scores["석차"]) == ["1 / 3", "3 / 3", "2 / 3"]
    assert len(pd.read_csv(out_dir / "transaction_log.csv", encoding="utf-8-sig")) == 12


def test_second_run_with_prior_state_adds_nothing(tmp_path, sample_csv_paths, capsys):
    out_dir = tmp_path / "out"
    args = [
        "run",
        "--catalog",
        str(sample_csv_paths["catalog"]),
        "--responses",
        str(sample_csv_paths["responses"]),
        "--out-dir",
        str(out_dir),
    ]
    assert main(args) == 0
    capsys.readouterr()

    prior = ["--prior-log", str(out_dir / "transaction_log.csv"), "--prior-ledger", str(out_dir / "progress_master.csv")]
    assert main(args + prior) == 0
    assert capsys.readouterr().out.startswith("0 new transactions")


def test_check_reports_catalog_problems(tmp_path, sample_csv_paths, capsys):
    assert main(["check", "--catalog", str(sample_csv_paths["catalog"])]) == 0

    bad = pd.read_csv(sample_csv_paths["catalog"])
    bad.loc[0, "난이도"] = "최상"
    bad_path = tmp_path / "bad.csv"
    bad.to_csv(bad_path, index=False)
    capsys.readouterr()

    assert main(["check", "--catalog", str(bad_path)]) == 1
    assert "FAIL  unrecognized_difficulty: 1" in capsys.readouterr().out


def test_init_config_selects_whole_taxonomy(tmp_path, sample_csv_paths):
    path = tmp_path / "settings.json"
    assert main(["init-config", str(path), "--classification", str(sample_csv_paths["classification"])]) == 0

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["selected_sub_units"] == ["공통수학1|다항식|다항식의 덧셈", "공통수학1|방정식|근의 공식"]
    assert saved["recent_count"] == 5


def test_invalid_settings_exit_with_error(tmp_path, sample_csv_paths, capsys):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"recent_count": 0}), encoding="utf-8")

    code = main(
        [
            "run",
            "--catalog",
            str(sample_csv_paths["catalog"]),
            "--responses",
            str(sample_csv_paths["responses"]),
            "--config",
            str(settings),
            "--out-dir",
            str(tmp_path / "out"),
        ]
    )

    assert code == 1
    assert "recent_count" in capsys.readouterr().err


def test_report_exports_tables_and_charts(tmp_path, sample_csv_paths, capsys):
    out_dir = tmp_path / "out"
    reports = tmp_path / "reports"
    run = ["run", "--catalog", str(sample_csv_paths["catalog"]), "--responses", str(sample_csv_paths["responses"]), "--out-dir", str(out_dir)]
    assert main(run) == 0
    capsys.readouterr()

    code = main(
        [
            "report",
            "--ledger",
            str(out_dir / "progress_master.csv"),
            "--catalog",
            str(sample_csv_paths["catalog"]),
            "--classification",
            str(sample_csv_paths["classification"]),
            "--responses",
            str(sample_csv_paths["responses"]),
            "--exam-scores",
            str(out_dir / "exam_scores.csv"),
            "--question-stats",
            str(out_dir / "question_stats_M1.csv"),
            "--out-dir",
            str(reports),
        ]
    )

    assert code == 0
    for name in [
        "student_overview.csv",
        "units_김민준.csv",
        "major_units_김민준.csv",
        "mastery_김민준.html",
        "units_김민준.html",
        "score_distribution_M1.csv",
        "score_distribution_M1.html",
        "question_errors_M1.html",
    ]:
        assert (reports / name).exists(), name
    overview = pd.read_csv(reports / "student_overview.csv", encoding="utf-8-sig")
    grades = dict(zip(overview["student_id"], overview["grade"]))
    assert grades == {"김민준": "고1", "이서연": "고1", "박지호": "미지정"}
    assert "<html>" in (reports / "mastery_김민준.html").read_text(encoding="utf-8")
    assert "for 3 students" in capsys.readouterr().out


def test_report_can_be_limited_to_one_student(tmp_path, sample_csv_paths):
    out_dir = tmp_path / "out"
    reports = tmp_path / "reports"
    assert main(["run", "--catalog", str(sample_csv_paths["catalog"]), "--responses", str(sample_csv_paths["responses"]), "--out-dir", str(out_dir)]) == 0

    args = ["report", "--ledger", str(out_dir / "progress_master.csv"), "--catalog", str(sample_csv_paths["catalog"])]
    assert main(args + ["--student", "이서연", "--out-dir", str(reports)]) == 0

    assert (reports / "units_이서연.csv").exists()
    assert not (reports / "units_김민준.csv").exists()
    assert not list(reports.glob("score_distribution_*"))
