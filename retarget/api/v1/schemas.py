from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, PositiveInt

from retarget.models.nodes import (
    Bounds,
    ContentNode,
    FillKind,
    FlowLayout,
    LayoutMode,
    LayoutPositioning,
    NodeType,
)


class JobStatus(str, Enum):
    """High-level lifecycle states for a retargeting job."""

    PENDING = "pending"
    RETARGETING = "retargeting"
    COMPLETED = "completed"
    FAILED = "failed"


class BoundsPayload(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: NonNegativeFloat
    height: NonNegativeFloat


class FlowLayoutPayload(BaseModel):
    """Flow (auto-layout) settings of a container; `NONE` places children freely."""

    mode: LayoutMode = LayoutMode.NONE
    primary_sizing: str = "FIXED"
    counter_sizing: str = "FIXED"
    wrap: str = "NO_WRAP"
    primary_align: str = "MIN"
    counter_align: str = "MIN"
    item_spacing: NonNegativeFloat = 0.0
    counter_axis_spacing: NonNegativeFloat | None = None
    padding_left: NonNegativeFloat = 0.0
    padding_right: NonNegativeFloat = 0.0
    padding_top: NonNegativeFloat = 0.0
    padding_bottom: NonNegativeFloat = 0.0
    clips_content: bool = False


class ContentNodePayload(BaseModel):
    """A node of the source composition, with its subtree."""

    id: str = Field(..., min_length=1, description="Unique node identifier within the tree.")
    type: NodeType = Field(..., description="Node type tag.")
    bounds: BoundsPayload = Field(..., description="Bounds relative to the parent node.")
    name: str = ""
    fill: FillKind = FillKind.NONE
    tags: List[str] = Field(
        default_factory=list,
        description="Authoring tags such as 'overlay', 'hero_bleed' or an explicit role like 'subject'.",
    )
    visible: bool = True
    children: List["ContentNodePayload"] = Field(default_factory=list)
    layout: FlowLayoutPayload | None = None
    positioning: LayoutPositioning = LayoutPositioning.AUTO
    font_size: float | None = Field(default=None, gt=0)
    resizable: bool = True

    def to_model(self) -> ContentNode:
        layout = FlowLayout(**self.layout.model_dump()) if self.layout else FlowLayout()
        return ContentNode(
            id=self.id,
            node_type=self.type,
            bounds=Bounds(self.bounds.x, self.bounds.y, self.bounds.width, self.bounds.height),
            name=self.name,
            fill=self.fill,
            tags=set(self.tags),
            visible=self.visible,
            children=[child.to_model() for child in self.children],
            layout=layout,
            positioning=self.positioning,
            font_size=self.font_size,
            resizable=self.resizable,
        )

    @classmethod
    def from_model(cls, node: ContentNode) -> "ContentNodePayload":
        layout = node.layout
        return cls(
            id=node.id,
            type=node.node_type,
            bounds=BoundsPayload(
                x=node.bounds.x,
                y=node.bounds.y,
                width=max(node.bounds.width, 0.0),
                height=max(node.bounds.height, 0.0),
            ),
            name=node.name,
            fill=node.fill,
            tags=sorted(node.tags),
            visible=node.visible,
            children=[cls.from_model(child) for child in node.children],
            layout=FlowLayoutPayload(
                mode=layout.mode,
                primary_sizing=layout.primary_sizing,
                counter_sizing=layout.counter_sizing,
                wrap=layout.wrap,
                primary_align=layout.primary_align,
                counter_align=layout.counter_align,
                item_spacing=layout.item_spacing,
                counter_axis_spacing=layout.counter_axis_spacing,
                padding_left=layout.padding_left,
                padding_right=layout.padding_right,
                padding_top=layout.padding_top,
                padding_bottom=layout.padding_bottom,
                clips_content=layout.clips_content,
            ),
            positioning=node.positioning,
            font_size=node.font_size,
            resizable=node.resizable,
        )


class JobCreateRequest(BaseModel):
    """Request body for retargeting a composition described as JSON."""

    source: ContentNodePayload = Field(..., description="Root frame of the source composition.")
    targets: List[str] = Field(..., min_length=1, description="Target ids from the catalog, in output order.")
    safe_area_ratio: float | None = Field(
        default=None,
        ge=0,
        le=0.5,
        description="Symmetric safe-area inset as a fraction of each target side. Defaults to server config.",
    )
    ai_signals: Dict[str, Any] | None = Field(
        default=None,
        description="Raw AI analysis bundle (roles, focalPoints, qa, faceRegions); sanitized server-side.",
    )


class TargetInfo(BaseModel):
    """Catalog entry for a destination canvas."""

    id: str
    label: str
    description: str
    width: PositiveInt
    height: PositiveInt
    aspect_ratio: float
    overlay_label: str
    safe_area_critical: bool


class JobCreateResponse(BaseModel):
    """Response returned when a new job is created."""

    job_id: str = Field(..., description="Server-generated unique job identifier.")
    status: JobStatus = Field(..., description="Status of the job after its target passes ran.")
    targets: List[str] = Field(default_factory=list, description="Requested target ids.")


class JobSummary(BaseModel):
    """Lightweight view of a job suitable for listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique job identifier.")
    status: JobStatus = Field(..., description="Current lifecycle status for the job.")


class JobDetail(BaseModel):
    """Detailed view of a single job."""

    id: str = Field(..., description="Unique job identifier.")
    status: JobStatus = Field(..., description="Current lifecycle status for the job.")
    targets: List[str] = Field(default_factory=list, description="Requested target ids.")
    safe_area_ratio: float = Field(..., description="Safe-area ratio used for every target pass.")
    has_ai_signals: bool = Field(..., description="Whether usable AI signals survived sanitization.")
    created_at: str = Field(
        ...,
        description="Job creation timestamp in ISO 8601 format (UTC).",
    )
    updated_at: str = Field(
        ...,
        description="Last modification timestamp in ISO 8601 format (UTC).",
    )


class WarningPayload(BaseModel):
    code: str
    severity: str
    message: str | None = None


class ExpansionPlanPayload(BaseModel):
    start: float
    end: float
    interior: float


class KillSwitchPayload(BaseModel):
    activated: bool
    hidden_node_ids: List[str] = Field(default_factory=list)
    target_height: float
    threshold: float


class NodeFailurePayload(BaseModel):
    node_id: str
    reason: str


class VariantPayload(BaseModel):
    """One retargeted variant with its plans and QA findings."""

    target_id: str
    width: PositiveInt
    height: PositiveInt
    profile: str
    scale: float
    horizontal: ExpansionPlanPayload
    vertical: ExpansionPlanPayload
    warnings: List[WarningPayload] = Field(default_factory=list)
    kill_switch: KillSwitchPayload | None = None
    failures: List[NodeFailurePayload] = Field(default_factory=list)
    frame: ContentNodePayload


class JobVariantsResponse(BaseModel):
    """All variants produced for a job, in requested target order."""

    job_id: str = Field(..., description="Job identifier.")
    status: JobStatus = Field(..., description="Current job status.")
    variants: List[VariantPayload] = Field(default_factory=list)
