"""Explicit species -> column mapping for wide survey tables.

The schema is built and validated once, right after loading, and every later
stage iterates species in schema order instead of selecting columns by
position or pattern.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from .errors import SchemaError


@dataclass(frozen=True)
class SpeciesSchema:
    species: tuple
    columns: tuple

    def __post_init__(self):
        if len(self.species) != len(self.columns):
            raise SchemaError("species and columns must have the same length")
        if not self.columns:
            raise SchemaError("A species schema needs at least one species column")
        dup_species = pd.Index(self.species)[pd.Index(self.species).duplicated()]
        if len(dup_species):
            raise SchemaError(f"Duplicate species ids: {sorted(set(dup_species))}")
        dup_cols = pd.Index(self.columns)[pd.Index(self.columns).duplicated()]
        if len(dup_cols):
            raise SchemaError(f"Duplicate species columns: {sorted(set(dup_cols))}")

    @classmethod
    def from_columns(cls, names, rename=None):
        """Schema over the given columns; `rename` maps column -> species id."""
        rename = rename or {}
        names = tuple(names)
        return cls(species=tuple(rename.get(c, c) for c in names), columns=names)

    @classmethod
    def from_range(cls, columns, start, stop=None, rename=None):
        """Schema over `columns[start:stop]` (the species-column index range)."""
        selected = list(columns)[start:stop]
        if not selected:
            raise SchemaError(f"No species columns in range [{start}:{stop}]")
        return cls.from_columns(selected, rename=rename)

    def __len__(self):
        return len(self.columns)

    def __iter__(self):
        return iter(zip(self.species, self.columns))

    def column_for(self, species):
        try:
            return self.columns[self.species.index(species)]
        except ValueError:
            raise KeyError(species) from None

    @property
    def rename_map(self):
        """column -> species id"""
        return dict(zip(self.columns, self.species))

    def validate(self, df):
        """Check that `df` carries every species column with non-negative numeric counts."""
        missing = [c for c in self.columns if c not in df.columns]
        if missing:
            raise SchemaError(f"Survey table lacks species columns: {missing}")
        for col in self.columns:
            raw = df[col]
            values = pd.to_numeric(raw, errors="coerce")
            bad = values.isna() & raw.notna()
            if bad.any():
                raise SchemaError(f"Non-numeric counts in species column {col!r}")
            if (values < 0).any():
                raise SchemaError(f"Negative counts in species column {col!r}")
            if (values.dropna() % 1 != 0).any():
                raise SchemaError(f"Non-integer counts in species column {col!r}")
        return self

    def counts(self, df):
        """Count matrix (rows x species) in schema order."""
        return df.loc[:, list(self.columns)].to_numpy(dtype=float, na_value=np.nan)
