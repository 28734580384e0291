import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

# ---------- Column names ----------
SITE = "site"
METHOD = "method"
SPECIES = "species"
ABUNDANCE = "abundance"
SIZE = "size"
MIN_SIZE = "min_size"
MAX_SIZE = "max_size"
LATITUDE = "latitude"
LONGITUDE = "longitude"

# ---------- Groups ----------
METHODS = ("Malaise", "Pollard Walk")
CROWD_LABEL = "iNaturalist"

# display strings for group labels, and the order they are presented in
METHOD_LABELS = {
    "Malaise": "Malaise trap",
    "Pollard Walk": "Pollard walk",
    CROWD_LABEL: "iNaturalist",
}
METHOD_ORDER = ["Malaise", "Pollard Walk", CROWD_LABEL]

# ---------- Analysis settings ----------
N_BOOT = 1000
ALPHA = 0.05
FIG_DPI = 200


@dataclass
class AnalysisConfig:
    """Runtime settings for one analysis run."""

    survey_path: Path = Path("survey.csv")
    traits_path: Path = Path("traits.csv")
    crowd_path: Path = None
    out_dir: Path = Path("outputs")
    # positional range of the species count columns in the survey table
    species_start: int = 2
    species_stop: int = None
    methods: tuple = METHODS
    n_boot: int = N_BOOT
    seed: int = None
    strict: bool = False
    labels: dict = field(default_factory=lambda: dict(METHOD_LABELS))

    def __post_init__(self):
        for name in ("survey_path", "traits_path", "crowd_path", "out_dir"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                setattr(self, name, Path(value))
        self.methods = tuple(self.methods)
        if len(self.methods) != 2:
            raise ValueError(f"Exactly two collection methods expected, got {self.methods!r}")
        if self.n_boot < 2:
            raise ValueError("n_boot must be at least 2 to compare bootstrap distributions")

    def update(self, **overrides):
        """Copy with every non-None override applied (CLI flags over file values)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path):
    """Read an AnalysisConfig from a JSON file. Unknown keys are rejected."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")
    with path.open() as fh:
        raw = json.load(fh)
    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
    return AnalysisConfig(**raw)
