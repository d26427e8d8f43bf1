import math
from typing import Dict, Tuple

CANCER = "Cancer"
NON_CANCER = "Non-cancer"

# confidence percentage above which the image is labelled Cancer
THRESHOLD = 50.0

SUGGESTIONS: Dict[str, str] = {
    CANCER: "Segera periksa ke dokter!",
    NON_CANCER: "Penyakit kanker tidak terdeteksi.",
}


def classify(raw_score: float) -> Tuple[str, str]:
    score = float(raw_score)
    if math.isnan(score):
        raise ValueError("Model score is NaN")
    label = CANCER if score > THRESHOLD else NON_CANCER
    return label, SUGGESTIONS[label]
