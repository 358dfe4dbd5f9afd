import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DEFAULT_SEED_PATH = Path(__file__).with_name("seed.json")


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    log_level: str = "INFO"
    seed_path: Path = DEFAULT_SEED_PATH

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment, loading a workspace ``.env`` first.

        Variables already set in the process win over the ``.env`` file.
        """
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path, override=False)

        seed = os.getenv("COBROS_SEED_PATH")
        return cls(
            data_dir=Path(os.getenv("COBROS_DATA_DIR") or ".cobros"),
            log_level=os.getenv("COBROS_LOG_LEVEL") or "INFO",
            seed_path=Path(seed) if seed else DEFAULT_SEED_PATH,
        )
