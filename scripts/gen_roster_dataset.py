#!/usr/bin/env python3
"""Synthetic roster workbook generator for load testing.

Produces a roster in either layout:
- generic: two title rows, a header row, then participant rows
- specialized: personnel-list marker, fixed header on row 13, section
  separators every 25 rows

A share of rows can be made invalid (missing name / bad email) and a share
can repeat an earlier identifier code, to exercise validation and the
duplicate-association path.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

POSITIONS = ["Торговый представитель", "Медицинский представитель", "Супервайзер", "Менеджер"]
TERRITORIES = ["Москва", "Казань", "Новосибирск", "Поволжье", "Санкт-Петербург"]
LAST_NAMES = ["Иванов", "Петров", "Сидоров", "Кузнецов", "Смирнов", "Орлов", "Попов", "Волков"]
FIRST_NAMES = ["Иван", "Пётр", "Олег", "Павел", "Максим", "Сергей", "Андрей", "Никита"]

GENERIC_HEADER = ["№", "ФИО", "Табельный номер", "Должность", "Территория", "Стаж", "Телефон", "E-mail"]
SPECIALIZED_HEADER = [
    "№", "ФИО", "SAP", "Должность", "Территория", "Стаж", "E-mail", "Телефон", "Согласование",
]


def generate_participants(
    rows: int, invalid_ratio: float = 0.05, duplicate_ratio: float = 0.02, seed: int = 42
) -> list[dict[str, Any]]:
    """Generate participant records with reproducible randomness."""
    rng = np.random.default_rng(seed)
    people: list[dict[str, Any]] = []
    for i in range(rows):
        code = 50_000_000 + i
        if people and rng.random() < duplicate_ratio:
            code = people[int(rng.integers(0, len(people)))]["code"]
        name = f"{rng.choice(LAST_NAMES)} {rng.choice(FIRST_NAMES)}"
        email: str | None = f"user{code}@example.com" if rng.random() < 0.5 else None
        if rng.random() < invalid_ratio:
            if rng.random() < 0.5:
                name = ""
            else:
                email = "broken-email"
        people.append({
            "code": code,
            "name": name,
            "position": str(rng.choice(POSITIONS)),
            "territory": str(rng.choice(TERRITORIES)),
            "days": int(rng.integers(0, 3650)),
            "phone": f"+7 9{int(rng.integers(0, 10**9)):09d}",
            "email": email,
            "approval": str(rng.choice(["согласовано", "на согласовании", ""])),
        })
    return people


def build_generic_frame(people: list[dict[str, Any]]) -> pd.DataFrame:
    rows: list[list[Any]] = [["Список участников мероприятия"], ["Сгенерировано для нагрузочного теста"]]
    rows.append(GENERIC_HEADER)
    for idx, p in enumerate(people, start=1):
        rows.append([idx, p["name"], p["code"], p["position"], p["territory"], p["days"],
                     p["phone"], p["email"]])
    return pd.DataFrame(rows, dtype=object)


def build_specialized_frame(people: list[dict[str, Any]]) -> pd.DataFrame:
    rows: list[list[Any]] = [["ООО Компания"], ["Список персонала"]]
    rows += [[f"служебная строка {i}"] for i in range(2, 12)]
    rows.append(SPECIALIZED_HEADER)
    for idx, p in enumerate(people, start=1):
        if idx % 25 == 1:
            rows.append([f"Подразделение {idx // 25 + 1}"])
        rows.append([idx, p["name"], p["code"], p["position"], p["territory"], p["days"],
                     p["email"], p["phone"], p["approval"]])
    return pd.DataFrame(rows, dtype=object)


def create_roster_file(output_path: Path, people: list[dict[str, Any]], layout: str) -> None:
    df = build_specialized_frame(people) if layout == "specialized" else build_generic_frame(people)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Roster", index=False, header=False)
    print(f"Created roster file: {output_path}")
    print(f"  Layout: {layout}")
    print(f"  Participant rows: {len(people):,}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic roster workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --rows 1000 --output data/roster_1k.xlsx
  %(prog)s --rows 500 --layout specialized --output data/personnel.xlsx
        """,
    )
    parser.add_argument("--rows", type=int, default=1000, help="Participant rows (default: 1000)")
    parser.add_argument(
        "--layout", choices=["generic", "specialized"], default="generic", help="Sheet layout"
    )
    parser.add_argument("--invalid-ratio", type=float, default=0.05, help="Share of invalid rows")
    parser.add_argument("--duplicate-ratio", type=float, default=0.02, help="Share of repeated codes")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--output", type=Path, required=True, help="Output .xlsx path")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.invalid_ratio <= 1 or not 0 <= args.duplicate_ratio <= 1:
        print("Error: ratios must be between 0 and 1", file=sys.stderr)
        return 1

    try:
        people = generate_participants(args.rows, args.invalid_ratio, args.duplicate_ratio, args.seed)
        create_roster_file(args.output, people, args.layout)
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
