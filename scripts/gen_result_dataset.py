#!/usr/bin/env python3
"""Synthetic result sheet generator for performance testing.

Generates result sheets in the layout the ingest expects:
- Row 1: University title row
- Row 2: Exam title row
- Row 3: Header row (SNO, HTNO, SUBCODE, SUBNAME, INT, GRADE, CR)
- Row 4+: One row per (student, subject)

Output format follows the file suffix: .xlsx (openpyxl) or .csv.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

HEADER = ["SNO", "HTNO", "SUBCODE", "SUBNAME", "INT", "GRADE", "CR"]
SUBJECT_NAMES = [
    "Mathematics", "Applied Physics", "Engineering Chemistry", "Programming in C",
    "Engineering Drawing", "Communicative English", "Data Structures", "Digital Logic",
]
GRADES = ["O", "A+", "A", "B+", "B", "C", "F", "ABSENT", "MP"]
# 合格成績に寄せる
GRADE_WEIGHTS = [0.08, 0.15, 0.2, 0.2, 0.15, 0.1, 0.07, 0.03, 0.02]


def generate_result_rows(students: int, subjects: int, seed: int = 42) -> pd.DataFrame:
    """Generate one data row per (student, subject).

    Rolls look like 21HN1A0001, subject codes like R201201. Internal marks
    are 0-30; failing grades carry 0 credits.
    """
    np.random.seed(seed)

    codes = [f"R2012{i + 1:02d}" for i in range(subjects)]
    names = [SUBJECT_NAMES[i % len(SUBJECT_NAMES)] for i in range(subjects)]
    credits = np.random.choice([1.5, 3.0, 4.0], subjects).tolist()

    total = students * subjects
    grades = np.random.choice(GRADES, total, p=GRADE_WEIGHTS).tolist()
    marks = np.random.randint(0, 31, total).tolist()

    data: dict[str, list[object]] = {h: [] for h in HEADER}
    for n in range(total):
        s, j = divmod(n, subjects)
        grade = grades[n]
        data["SNO"].append(n + 1)
        data["HTNO"].append(f"21HN1A{s + 1:04d}")
        data["SUBCODE"].append(codes[j])
        data["SUBNAME"].append(names[j])
        data["INT"].append("AB" if grade == "ABSENT" else marks[n])
        data["GRADE"].append(grade)
        data["CR"].append(0 if grade in ("F", "ABSENT", "MP") else credits[j])
    return pd.DataFrame(data)


def write_result_sheet(
    output_path: Path,
    students: int,
    subjects: int,
    title: str = "B.Tech I Year II Semester Regular Results",
    seed: int = 42,
) -> int:
    """Write a result sheet (title rows + header + data); returns the data row count."""
    df = generate_result_rows(students, subjects, seed)
    width = len(df.columns)
    sheet = pd.DataFrame(
        [["UNIVERSITY COLLEGE OF ENGINEERING"] + [None] * (width - 1), [title] + [None] * (width - 1), HEADER]
        + df.values.tolist()
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == ".csv":
        sheet.to_csv(output_path, header=False, index=False)
    else:
        sheet.to_excel(output_path, sheet_name="Results", header=False, index=False, engine="openpyxl")
    return len(df)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic result sheets for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 2000 students x 8 subjects as xlsx
  %(prog)s data/r20-1-2.xlsx

  # CSV export, custom size
  %(prog)s data/big.csv --students 10000 --subjects 9 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output path (.xlsx or .csv)")
    parser.add_argument("--students", type=int, default=2000, help="Number of students (default: 2000)")
    parser.add_argument("--subjects", type=int, default=8, help="Subjects per student (default: 8)")
    parser.add_argument("--title", default="B.Tech I Year II Semester Regular Results", help="Exam title row")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.students <= 0 or args.subjects <= 0:
        print("Error: --students and --subjects must be positive", file=sys.stderr)
        return 1
    if args.subjects > 99:
        print("Error: --subjects must be at most 99", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in (".xlsx", ".csv"):
        print("Error: output must end with .xlsx or .csv", file=sys.stderr)
        return 1

    try:
        rows = write_result_sheet(args.output, args.students, args.subjects, args.title, args.seed)
    except OSError as e:
        print(f"Error writing dataset: {e}", file=sys.stderr)
        return 1

    print(f"Created result sheet: {args.output}")
    print(f"  Students: {args.students:,}")
    print(f"  Subjects per student: {args.subjects}")
    print(f"  Data rows: {rows:,} (+ 3 title/header rows)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
