import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from .analysis import analyze
from .export import build_graph_data
from .ingest import CSVFormatError, parse_csv
from .schemas import FullAnalysisResponse


logger = logging.getLogger("money_muling_analysis.api")

app = FastAPI(title="Money Muling Detection Engine")


load_dotenv()
origins = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Money Muling Detection Engine is running"}


@app.post(
    "/analyze",
    response_model=FullAnalysisResponse,
    summary="Analyze uploaded CSV and detect money muling patterns.",
)
def analyze_file(file: UploadFile = File(...)) -> FullAnalysisResponse:
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only .csv files are supported.")

    file_bytes = file.file.read()

    try:
        transactions = parse_csv(file_bytes)
    except CSVFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if not transactions:
        raise HTTPException(status_code=400, detail="CSV contains no transactions.")

    logger.info("Analyzing upload %s (%d transactions)", file.filename, len(transactions))
    result = analyze(transactions)

    return FullAnalysisResponse(result=result.report(), graph=build_graph_data(result))


@app.get("/health")
async def health_check():
    return {"status": "ok"}
