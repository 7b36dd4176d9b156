"""
FastAPI Backend for the Lucky Color app (Bazi + Feng Shui)

Provides RESTful endpoints for the web/mobile front end.
"""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from dotenv import load_dotenv

from advisor import OutfitAdvisor
from bazi_utils import PaletteChartGenerator
from errors import AdvisorError, BaziError, InvalidInputError, UnsupportedDateError
from llm_client import LLM_MODEL, get_llm_client
from logic import LunarOracle, calculate_bazi, get_daily_recommendation

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")


# --- Pydantic Models for Request/Response ---

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BirthData(CamelModel):
    """Birth data for Bazi calculation."""
    birth_date: str = Field(..., description="Date of birth (YYYY-MM-DD)")
    birth_time: Optional[str] = Field(None, description="Time of birth (HH:MM), optional")
    gender: Optional[str] = Field(None, description="Gender (unused by the calculation)")
    include_directions: bool = Field(False, description="Also compute Feng Shui directions")


class DailyRequest(BirthData):
    target_date: Optional[str] = Field(None, description="Day to check (YYYY-MM-DD), defaults to today")


class PillarModel(CamelModel):
    """A single pillar (Gan+Zhi)."""
    stem: str
    stem_pinyin: str
    branch: str
    branch_pinyin: str
    stem_element: str
    branch_element: str


class ChartModel(CamelModel):
    year: PillarModel
    month: PillarModel
    day: PillarModel
    hour: Optional[PillarModel] = Field(None, description="Null when no birth time was given")


class ColorModel(CamelModel):
    color: str
    code: str
    element: str


class DirectionalRecommendationModel(CamelModel):
    primary_direction: str
    alternate_directions: List[str]
    element: str
    strength: str = Field(..., description="excellent / good / moderate")
    reason: str
    scores: Dict[str, int]


class WealthCornerModel(CamelModel):
    direction: str
    element: str
    template: str
    enhancement_colors: List[ColorModel]
    items: List[str]
    advice: str


class DirectionalAnalysisModel(CamelModel):
    sitting_direction: DirectionalRecommendationModel
    desk_position: DirectionalRecommendationModel
    wealth_corner: WealthCornerModel


class BaziResponse(CamelModel):
    """Response for /api/bazi endpoint."""
    chart: ChartModel
    element_balance: Dict[str, float]
    strongest_element: str
    weakest_element: str
    day_master_strength: str = Field(..., description="strong / weak")
    support_score: float
    drain_score: float
    lucky_elements: List[str]
    unlucky_elements: List[str]
    lucky_colors: List[ColorModel]
    unlucky_colors: List[ColorModel]
    day_master: str
    day_master_element: str
    directional_analysis: Optional[DirectionalAnalysisModel] = None


class DailyResponse(CamelModel):
    date: str
    day_element: str
    recommendation: str
    lucky_colors: List[ColorModel]
    unlucky_colors: List[ColorModel]


class ImageAnalysisRequest(CamelModel):
    image: Optional[str] = Field(None, description="Base64 JPEG, data URL prefix allowed")
    lucky_colors: List[ColorModel] = Field(default_factory=list)
    unlucky_colors: List[ColorModel] = Field(default_factory=list)
    directional_analysis: Optional[Dict[str, Any]] = None
    day_master: Optional[str] = None


class ReportResponse(BaseModel):
    report: str


class SpeechScriptRequest(BaseModel):
    report: Optional[str] = None
    type: str = Field("outfit", description="outfit / workspace")


class SpeechScriptResponse(BaseModel):
    script: str


# --- FastAPI App Initialization ---

app = FastAPI(
    title="Lucky Color API",
    description="八字幸运色后端 API - 排盘、五行喜忌、幸运色、风水方位",
    version="v0.3.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_PALETTE_GEN = PaletteChartGenerator()


# --- Dependencies ---

def get_oracle() -> LunarOracle:
    return LunarOracle()


def get_advisor() -> OutfitAdvisor:
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise HTTPException(status_code=500, detail="GEMINI_API_KEY not configured")
    return OutfitAdvisor(get_llm_client(api_key), model=LLM_MODEL)


def run_bazi(data: BirthData, oracle):
    """Run the calculation and translate engine errors to HTTP errors."""
    try:
        return calculate_bazi(
            data.birth_date,
            data.birth_time or None,
            include_directions=data.include_directions,
            oracle=oracle,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UnsupportedDateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except BaziError as e:
        print(f"ERROR: Bazi calculation failed: {e}", flush=True)
        raise HTTPException(status_code=500, detail="Failed to calculate BaZi")


# --- API Endpoints ---

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Lucky Color API is running"}


@app.post("/api/bazi", response_model=BaziResponse, response_model_by_alias=True)
async def get_bazi(data: BirthData, oracle: LunarOracle = Depends(get_oracle)):
    """
    Calculate the Bazi chart, element balance, Day Master strength and lucky colors.
    Set includeDirections to also get sitting direction, desk position and wealth corner.
    """
    analysis = run_bazi(data, oracle)
    return BaziResponse.model_validate(analysis.to_dict())


@app.post("/api/bazi/daily", response_model=DailyResponse, response_model_by_alias=True)
async def get_daily(data: DailyRequest, oracle: LunarOracle = Depends(get_oracle)):
    """Today's (or targetDate's) color recommendation for a birth profile."""
    analysis = run_bazi(data, oracle)
    try:
        daily = get_daily_recommendation(analysis, data.target_date, oracle=oracle)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UnsupportedDateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return DailyResponse.model_validate(daily.to_dict())


@app.post("/api/bazi/palette")
async def get_palette(data: BirthData, oracle: LunarOracle = Depends(get_oracle)):
    """Lucky/unlucky color swatches and element balance as SVG."""
    analysis = run_bazi(data, oracle)
    return Response(content=_PALETTE_GEN.generate_palette(analysis), media_type="image/svg+xml")


def _colors(models: List[ColorModel]) -> List[dict]:
    return [m.model_dump() for m in models]


@app.post("/api/gemini/analyze")
async def analyze_outfit(request: ImageAnalysisRequest, advisor: OutfitAdvisor = Depends(get_advisor)):
    """Analyze an outfit photo against the user's lucky colors."""
    if not request.image:
        raise HTTPException(status_code=400, detail="Image is required")
    try:
        return advisor.analyze_outfit(request.image, _colors(request.lucky_colors), _colors(request.unlucky_colors))
    except AdvisorError:
        raise HTTPException(status_code=500, detail="Failed to analyze outfit")


@app.post("/api/gemini/workspace-analyze")
async def analyze_workspace(request: ImageAnalysisRequest, advisor: OutfitAdvisor = Depends(get_advisor)):
    """Analyze a workspace photo with 2026 Flying Star knowledge and personal directions."""
    if not request.image:
        raise HTTPException(status_code=400, detail="No image provided")
    try:
        return advisor.analyze_workspace(
            request.image,
            _colors(request.lucky_colors),
            _colors(request.unlucky_colors),
            request.directional_analysis,
        )
    except AdvisorError:
        raise HTTPException(status_code=500, detail="Failed to analyze workspace")


@app.post("/api/gemini/report", response_model=ReportResponse)
async def write_report(request: ImageAnalysisRequest, advisor: OutfitAdvisor = Depends(get_advisor)):
    """Long-form outfit report in markdown."""
    if not request.image:
        raise HTTPException(status_code=400, detail="No image provided")
    try:
        report = advisor.write_report(
            request.image,
            _colors(request.lucky_colors),
            _colors(request.unlucky_colors),
            request.day_master,
        )
    except AdvisorError:
        raise HTTPException(status_code=500, detail="Failed to generate report")
    return ReportResponse(report=report)


@app.post("/api/gemini/speech-script", response_model=SpeechScriptResponse)
async def write_speech_script(request: SpeechScriptRequest, advisor: OutfitAdvisor = Depends(get_advisor)):
    """Turn a report into a short, plain-text speech script."""
    if not request.report:
        raise HTTPException(status_code=400, detail="No report provided")
    try:
        script = advisor.write_speech_script(request.report, request.type)
    except AdvisorError:
        raise HTTPException(status_code=500, detail="Failed to generate script")
    return SpeechScriptResponse(script=script)


# --- Run with: uvicorn main:app --reload ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
