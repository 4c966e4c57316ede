from pydantic import BaseModel, Field
from typing import List, Optional, Union

# Raw form values: text as typed, or numbers from programmatic callers.
FieldValue = Optional[Union[float, str]]


class PredictionRequest(BaseModel):
    age: FieldValue = None
    weight: FieldValue = None
    height: FieldValue = None


class PredictionResponse(BaseModel):
    score: float
    label: str
    text: str
    progress: int = Field(ge=0, le=100)
    coerced_fields: List[str] = []  # inputs that did not parse and were read as 0.0


class BatchPredictionResponse(BaseModel):
    predictions: List[PredictionResponse]
