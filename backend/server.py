# backend/server.py
"""FastAPI 분석 서버

엔드포인트:
- GET  /api/health          상태 확인
- POST /api/analyze         프레임별 측정값 → 삼킴 주기/임상 파라미터 JSON
- POST /api/analyze/csv     프레임별 측정값 → 평활화/정규화/Z-score CSV

분할 모델 서버가 만든 signals.areas 를 그대로 받아 동기적으로 계산한다.
"""

import sys
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field
import uvicorn

# 프로젝트 루트를 sys.path에 추가
BACKEND_DIR = Path(__file__).parent
sys.path.insert(0, str(BACKEND_DIR))

from swallow_analyzer import AnalyzerConfig, SwallowAnalyzer

logger = logging.getLogger(__name__)

app = FastAPI(title="VFSS Swallow Analysis Backend")

# CORS 허용 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class FrameMeasurement(BaseModel):
    """프레임 1장의 측정값 (없는 항목은 null)"""
    pharynx: Optional[float] = None
    vestibule: Optional[float] = None
    bolus: Optional[float] = None
    bolus_pharynx_overlap: Optional[float] = None
    bolus_vestibule_overlap: Optional[float] = None
    hyoid_c4_distance: Optional[float] = None
    ues_length: Optional[float] = None
    c2c4_length: Optional[float] = None


class AnalyzeRequest(BaseModel):
    fps: float = Field(AnalyzerConfig.DEFAULT_FPS, gt=0)
    areas: List[FrameMeasurement]
    min_peak_height: float = AnalyzerConfig.MIN_PEAK_HEIGHT
    min_cycle_length: int = Field(AnalyzerConfig.MIN_CYCLE_LENGTH, ge=1)
    aspiration_threshold: float = AnalyzerConfig.ASPIRATION_THRESHOLD


def _run(request: AnalyzeRequest):
    analyzer = SwallowAnalyzer(
        fps=request.fps,
        min_peak_height=request.min_peak_height,
        min_cycle_length=request.min_cycle_length,
        aspiration_threshold=request.aspiration_threshold,
    )
    rows = [area.model_dump() for area in request.areas]
    result = analyzer.analyze_rows(rows)
    logger.info(
        "[Server] analyzed %d frames, %d swallows", result.frame_count, result.total_swallows
    )
    return result


# ─── REST API ───

@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/analyze")
def analyze(request: AnalyzeRequest):
    """측정값 분석 → 결과 JSON"""
    return _run(request).to_dict()


@app.post("/api/analyze/csv")
def analyze_csv(request: AnalyzeRequest):
    """측정값 분석 → 고급 분석 CSV"""
    csv_text = _run(request).to_csv()
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="advanced_analysis.csv"'},
    )


# ─── 메인 ───

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("=" * 60)
    print("  VFSS Swallow Analysis Backend")
    print("  http://localhost:8000")
    print("=" * 60)
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=8000,
    )
