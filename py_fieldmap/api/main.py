"""FastAPI main application."""

from typing import Annotated, List, Literal, Optional, Tuple, Union

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator

from .. import __version__
from ..config import settings
from ..core.coord_converter import CoordConverter
from ..core.height_map import HeightMap
from ..core.marching_squares import MarchingSquares
from ..core.merge_operations import resolve_operation
from ..core.scalar_field import ScalarField
from ..core.shape_painter import GeometryRecorder, ScaledShapePainter
from ..utils.logging import configure_logging

# Configure logging
configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Field Map API",
    description="Draw primitives into scalar fields and extract their contour",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class DiskOperation(BaseModel):
    """Merge a disk, the field is 1 at the radius."""

    kind: Literal["disk"] = "disk"
    x: float
    y: float
    radius: float = Field(..., gt=0)
    capping_ratio: Optional[float] = Field(None, gt=0)
    operation: str = Field("maximum", description="Merge operation name")


class SegmentOperation(BaseModel):
    """Merge a segment, the field is 1 at the thickness."""

    kind: Literal["segment"] = "segment"
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    thickness: float = Field(..., gt=0)
    capping_ratio: Optional[float] = Field(None, gt=0)
    operation: str = Field("maximum", description="Merge operation name")


class HillOperation(BaseModel):
    """Merge a hill, the field is height at the center and 1 at the radius."""

    kind: Literal["hill"] = "hill"
    x: float
    y: float
    height: float = Field(..., gt=0)
    radius: float = Field(..., gt=0)
    opacity: float = 1.0
    capping_ratio: Optional[float] = Field(None, gt=0)
    operation: str = Field("maximum", description="Merge operation name")


class FillOperation(BaseModel):
    """Flood an area below value_max and shade around it."""

    kind: Literal["fill"] = "fill"
    x: float
    y: float
    value_max: float
    thickness: float = Field(..., ge=0)
    capping_ratio: Optional[float] = Field(None, gt=0)


class UnfillOperation(BaseModel):
    """Empty an area above value_min and shade around it."""

    kind: Literal["unfill"] = "unfill"
    x: float
    y: float
    value_min: float
    thickness: float = Field(..., gt=0)
    capping_ratio: Optional[float] = Field(None, gt=0)


class ClearOperation(BaseModel):
    kind: Literal["clear"] = "clear"
    value: float = 0.0


class ClampOperation(BaseModel):
    kind: Literal["clamp"] = "clamp"
    min: float
    max: float


class TransformOperation(BaseModel):
    """Apply a * value + b."""

    kind: Literal["transform"] = "transform"
    a: float = 1.0
    b: float = 0.0


FieldOperation = Annotated[
    Union[
        DiskOperation,
        SegmentOperation,
        HillOperation,
        FillOperation,
        UnfillOperation,
        ClearOperation,
        ClampOperation,
        TransformOperation,
    ],
    Field(discriminator="kind"),
]


class Frame(BaseModel):
    """Surface bounds mapped onto the grid vertices."""

    left: float
    top: float
    right: float
    bottom: float

    @model_validator(mode="after")
    def check_extent(self) -> "Frame":
        if self.right == self.left or self.bottom == self.top:
            raise ValueError("Frame must have a non-zero width and height")
        return self


class FieldRequest(BaseModel):
    """A field description: dimensions, initial values and drawing operations."""

    width: int = Field(..., ge=2, description="Number of grid vertices on x")
    height: int = Field(..., ge=2, description="Number of grid vertices on y")
    values: Optional[List[List[float]]] = Field(
        None, description="Initial values, values[y][x]"
    )
    operations: List[FieldOperation] = Field(default_factory=list)
    frame: Optional[Frame] = Field(
        None, description="Surface bounds, coordinates are in grid basis without it"
    )


class ContourRequest(FieldRequest):
    """Request to extract the contour of a field."""

    threshold: Optional[float] = None
    draw_under: bool = False
    mode: Literal["fill", "outline"] = "fill"


class PathModel(BaseModel):
    points: List[Tuple[float, float]]
    closed: bool
    cell: Tuple[int, int]


class ContourResponse(BaseModel):
    """Contour geometry of a field."""

    threshold: float
    rectangles: List[Tuple[float, float, float, float]]
    paths: List[PathModel]
    min_value: float
    max_value: float


class SampleRequest(FieldRequest):
    """Request to sample heights and normals of a field."""

    points: List[Tuple[float, float]] = Field(..., min_length=1)


class SampleModel(BaseModel):
    x: float
    y: float
    height: float
    normal: Optional[Tuple[float, float, float]] = None


class SampleResponse(BaseModel):
    samples: List[SampleModel]


def build_height_map(request: FieldRequest) -> HeightMap:
    """
    Build a height map and apply the request operations in order.

    Raises:
        HTTPException: For oversized grids, mismatching values or unknown
            merge operations
    """
    if request.width > settings.max_grid_width or request.height > settings.max_grid_height:
        logger.warning(
            "Grid too large", width=request.width, height=request.height
        )
        raise HTTPException(
            status_code=400,
            detail=(
                f"Grid {request.width}x{request.height} exceeds the maximum "
                f"{settings.max_grid_width}x{settings.max_grid_height}"
            ),
        )

    if request.values is not None:
        if len(request.values) != request.height or any(
            len(row) != request.width for row in request.values
        ):
            logger.warning("Field values do not match the grid size")
            raise HTTPException(
                status_code=400,
                detail=f"Values must be {request.height} rows of {request.width} values",
            )
        scalar_field = ScalarField.from_array(request.values)
    else:
        scalar_field = ScalarField(request.width, request.height)

    if request.frame is not None:
        frame = request.frame
        coord_converter = CoordConverter.for_grid(
            request.width, request.height, frame.left, frame.top, frame.right, frame.bottom
        )
    else:
        coord_converter = CoordConverter(1.0, 1.0)

    height_map = HeightMap(scalar_field, coord_converter)
    for operation in request.operations:
        apply_operation(height_map, operation)
    return height_map


def apply_operation(height_map: HeightMap, operation: FieldOperation) -> None:
    """Apply one drawing operation to a height map."""
    capping_ratio = getattr(operation, "capping_ratio", None)
    if capping_ratio is None:
        capping_ratio = settings.default_capping_ratio

    merge = getattr(operation, "operation", None)
    if merge is not None:
        try:
            resolve_operation(merge)
        except ValueError as e:
            logger.warning("Invalid merge operation", error=str(e))
            raise HTTPException(status_code=400, detail=str(e))

    if isinstance(operation, DiskOperation):
        height_map.merge_disk(operation.x, operation.y, operation.radius, capping_ratio, merge)
    elif isinstance(operation, SegmentOperation):
        height_map.merge_segment(
            operation.start_x,
            operation.start_y,
            operation.end_x,
            operation.end_y,
            operation.thickness,
            capping_ratio,
            merge,
        )
    elif isinstance(operation, HillOperation):
        height_map.merge_hill(
            operation.x,
            operation.y,
            operation.height,
            operation.radius,
            operation.opacity,
            capping_ratio,
            merge,
        )
    elif isinstance(operation, FillOperation):
        height_map.fill_from(
            operation.x, operation.y, operation.value_max, operation.thickness, capping_ratio
        )
    elif isinstance(operation, UnfillOperation):
        height_map.unfill_from(
            operation.x, operation.y, operation.value_min, operation.thickness, capping_ratio
        )
    elif isinstance(operation, ClearOperation):
        height_map.clear(operation.value)
    elif isinstance(operation, ClampOperation):
        height_map.clamp(operation.min, operation.max)
    elif isinstance(operation, TransformOperation):
        height_map.transform(operation.a, operation.b)


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Field Map API", version=__version__)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Field Map API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Field Map API", "version": __version__, "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/fields/contours", response_model=ContourResponse)
def extract_contours(request: ContourRequest):
    """Build a field from drawing operations and extract its contour."""
    logger.info(
        "Contour extraction requested",
        width=request.width,
        height=request.height,
        operations=len(request.operations),
        mode=request.mode,
    )

    height_map = build_height_map(request)
    scalar_field = height_map.scalar_field
    threshold = (
        request.threshold if request.threshold is not None else settings.default_threshold
    )

    recorder = GeometryRecorder()
    painter = recorder
    if request.frame is not None:
        painter = ScaledShapePainter(recorder, height_map.coord_converter)

    marching_squares = MarchingSquares(scalar_field)
    if request.mode == "fill":
        marching_squares.fill_contour(
            0, 0, scalar_field.dim_x, scalar_field.dim_y, threshold, request.draw_under, painter
        )
    else:
        marching_squares.outline_contour(
            0, 0, scalar_field.dim_x, scalar_field.dim_y, threshold, request.draw_under, painter
        )

    logger.info(
        "Contour extracted",
        rectangles=len(recorder.rectangles),
        paths=len(recorder.paths),
    )

    return ContourResponse(
        threshold=threshold,
        rectangles=recorder.rectangles,
        paths=[
            PathModel(points=path.points, closed=path.closed, cell=path.cell)
            for path in recorder.paths
        ],
        min_value=float(scalar_field.values.min()),
        max_value=float(scalar_field.values.max()),
    )


@app.post("/fields/sample", response_model=SampleResponse)
def sample_field(request: SampleRequest):
    """Build a field from drawing operations and sample heights and normals."""
    logger.info(
        "Field sampling requested",
        width=request.width,
        height=request.height,
        points=len(request.points),
    )

    height_map = build_height_map(request)
    samples = []
    for x, y in request.points:
        normal = height_map.get_field_normal(x, y)
        samples.append(
            SampleModel(
                x=x,
                y=y,
                height=height_map.get_height(x, y),
                normal=tuple(float(c) for c in normal) if normal is not None else None,
            )
        )
    return SampleResponse(samples=samples)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
