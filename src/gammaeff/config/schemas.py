from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional, List

class RunCfg(BaseModel):
    """
    Global run controls.
    """

    # Diagnostics
    diagnostics_level: int = 1  # 0=off, 1=summary, 2=per-event

    # Limits
    max_events: Optional[int] = None

    @field_validator("diagnostics_level")
    def _diag_range(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("diagnostics_level must be 0, 1, or 2")
        return v

    @field_validator("max_events")
    def _max_events_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("max_events must be >= 0")
        return v

class IOCfg(BaseModel):
    """
    I/O paths.

    TOML:

    [io]
    input_path   = "events.h5"
    input_format = "hdf5_gammaeff"
    output_path  = "out/efficiency.h5"
    """

    input_path: str
    input_format: Literal["hdf5_gammaeff"] = "hdf5_gammaeff"
    output_path: str


class MainWallCfg(BaseModel):
    sides: int = 2
    columns: int = 20
    rows: int = 13

class XWallCfg(BaseModel):
    sides: int = 2
    walls: int = 2
    columns: int = 2
    rows: int = 16

class GVetoCfg(BaseModel):
    sides: int = 2
    walls: int = 2
    columns: int = 16

class GeometryCfg(BaseModel):
    """
    Calorimeter layout used by the neighbour locators.

    TOML:

    [geometry]
    modules = [0]
    diagonal_neighbours = false

    [geometry.main_wall]
    columns = 20
    rows = 13
    """

    modules: List[int] = Field(default_factory=lambda: [0])
    diagonal_neighbours: bool = False
    main_wall: MainWallCfg = Field(default_factory=MainWallCfg)
    xwall: XWallCfg = Field(default_factory=XWallCfg)
    gveto: GVetoCfg = Field(default_factory=GVetoCfg)


class ClusteringCfg(BaseModel):
    time_gap_ns: float = 2.5

    @field_validator("time_gap_ns")
    def _gap_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("time_gap_ns must be > 0")
        return v

class TruthCfg(BaseModel):
    step_hit_label: str = "__visu.tracks.calo"
    primary_sentinel: int = 0
    track_id_priority: Literal["track_id", "parent_track_id"] = "track_id"

class ReportCfg(BaseModel):
    write_histograms: bool = True
    export_png_on_write: bool = True


class Config(BaseModel):
    """
    Top-level TOML configuration.
    """

    run: RunCfg = Field(default_factory=RunCfg)
    io: IOCfg
    geometry: GeometryCfg = Field(default_factory=GeometryCfg)
    clustering: ClusteringCfg = Field(default_factory=ClusteringCfg)
    truth: TruthCfg = Field(default_factory=TruthCfg)
    report: ReportCfg = Field(default_factory=ReportCfg)
