"""
tests/oe_files.py

A miniature OE flat-file directory: one national area, one occupation, one
industry and two series, in the same layout BLS publishes.
"""
from pathlib import Path
from typing import Dict, Iterable

SERIES_HEADER = (
    "series_id\tseasonal\tareatype_code\tindustry_code\toccupation_code\tdatatype_code\t"
    "state_code\tarea_code\tsector_code\tseries_title\tfootnote_codes\tbegin_year\t"
    "begin_period\tend_year\tend_period"
)
DATA_HEADER = "series_id\tyear\tperiod\tvalue\tfootnote_codes"

CEO_SERIES = "OEUN000000000000011101103"

LOOKUP_FILES: Dict[str, str] = {
    "oe.areatype": "areatype_code\tareatype_name\nN\tNational\n",
    "oe.area": "state_code\tarea_code\tareatype_code\tarea_name\n00\t0000000\tN\tNational\n",
    "oe.datatype": "datatype_code\tdatatype_name\n01\tEmployment\n03\tAnnual mean wage\n",
    "oe.sector": "sector_code\tsector_name\n000000\tCross-industry, Private, Federal, State, and Local Government\n",
    "oe.occupation": (
        "occupation_code\toccupation_name\toccupation_description\tdisplay_level\tselectable\tsort_sequence\n"
        "000000\tAll Occupations\t\t0\tT\t1\n"
        "111011\tChief Executives\tDetermine and formulate policies\t3\tT\t5\n"
    ),
    "oe.industry": (
        "industry_code\tindustry_name\tdisplay_level\tselectable\tsort_sequence\n"
        "000000\tCross-industry, Private, Federal, State, and Local Government\t0\tT\t1\n"
    ),
    "oe.footnote": "footnote_code\tfootnote_text\n5\tThis wage is equal to or greater than $239,200 per year.\n",
    "oe.release": "release_date\tdescription\n2024-04\tMay 2023 estimates\n",
    "oe.seasonal": "seasonal_code\tseasonal_text\nS\tSeasonally Adjusted\nU\tNot Seasonally Adjusted\n",
}


def series_line(series_id: str, occupation: str = "111011", datatype: str = "03") -> str:
    return (
        f"{series_id}\tU\tN\t000000\t{occupation}\t{datatype}\t00\t0000000\t000000\t"
        f"Annual mean wage for {occupation}\t\t2019\tA01\t2023\tA01"
    )


SERIES_FILE = "\n".join([
    SERIES_HEADER,
    series_line(CEO_SERIES),
    series_line("S1", occupation="000000"),
]) + "\n"

DATA_FILE = "\n".join([
    DATA_HEADER,
    f"{CEO_SERIES}\t2022\tA01\t246440\t",
    f"{CEO_SERIES}\t2023\tA01\t258900\t5",
    "S1\t2023\tA01\t65470\t",
    "OEUN999999999999999999903\t2023\tA01\t1\t",
]) + "\n"


def write_files(directory: Path, files: Dict[str, str]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (directory / name).write_text(content, encoding="utf-8")
    return directory


def write_oe_directory(directory: Path, data_files: Iterable[str] = ("oe.data.0.Current",)) -> Path:
    files = dict(LOOKUP_FILES)
    files["oe.series"] = SERIES_FILE
    for name in data_files:
        files[name] = DATA_FILE
    return write_files(directory, files)
