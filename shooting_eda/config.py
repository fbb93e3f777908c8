import os
from dotenv import load_dotenv
from pathlib import Path

root_dir = Path(__file__).resolve().parent.parent
env_path = root_dir / ".env"

load_dotenv(env_path)


def _int_pair(name, default):
    """Reads a 'start,end' environment variable into an int tuple."""
    raw = os.getenv(name, default)
    start, end = (int(part) for part in raw.split(","))
    return (start, end)


class Config:
    NYPD_SHOOTING_URL = os.getenv(
        "NYPD_SHOOTING_URL",
        "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD",
    )
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

    OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", "./outputs/shootings"))

    # Modeling parameters
    TARGET_YEAR = int(os.getenv("TARGET_YEAR", "2020"))
    MODEL_YEAR_RANGE = _int_pair("MODEL_YEAR_RANGE", "2006,2020")
    PRECOVID_YEAR_RANGE = _int_pair("PRECOVID_YEAR_RANGE", "2018,2020")
    MODEL_MONTH_RANGE = _int_pair("MODEL_MONTH_RANGE", "6,8")

    @classmethod
    def initialize_folders(cls):
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
