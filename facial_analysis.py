"""
Face photo -> five geometric features -> animal archetype.

Landmarks come from MediaPipe Face Mesh. Whenever a face or a landmark group is
unavailable the affected feature is drawn from the range real measurements
occupy, so analysis never blocks on a bad photo.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from models import ANIMAL_TYPES, FacialFeatures

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# Face Mesh landmark indices for the groups the calculations use.
LEFT_EYEBROW = (276, 283, 282, 295, 285, 300, 293, 334, 296, 336)
RIGHT_EYEBROW = (46, 53, 52, 65, 55, 70, 63, 105, 66, 107)
LEFT_EYE = (263, 249, 390, 373, 374, 380, 381, 382, 362, 466, 388, 387, 386, 385, 384, 398)
RIGHT_EYE = (33, 7, 163, 144, 145, 153, 154, 155, 133, 246, 161, 160, 159, 158, 157, 173)
# Outer lip contour, upper arc first then lower arc.
LIPS = (
    61, 185, 40, 39, 37, 0, 267, 269, 270, 409, 291,
    146, 91, 181, 84, 17, 314, 405, 321, 375, 308,
)


@dataclass(frozen=True)
class LandmarkGroups:
    left_eyebrow: Sequence[Point]
    right_eyebrow: Sequence[Point]
    lips: Sequence[Point]
    left_eye: Sequence[Point]
    right_eye: Sequence[Point]
    all_points: Sequence[Point]


@dataclass(frozen=True)
class FaceAnalysis:
    features: FacialFeatures
    animal_type: str
    face_detected: bool


AnimalRule = Tuple[str, Callable[[FacialFeatures], bool]]

# Ordered cascade, first match wins.
ANIMAL_RULES: List[AnimalRule] = [
    ("bear", lambda f: f.face_width_ratio > 1.6 and f.jawline_angle > 95),
    ("cat", lambda f: f.eyebrow_angle < -5 and f.lip_curvature < 0 and f.face_width_ratio < 1.4),
    ("dog", lambda f: f.eyebrow_angle > 5 and f.lip_curvature > 0.1 and f.face_width_ratio < 1.5),
    ("rabbit", lambda f: f.face_width_ratio > 1.5 and f.eye_distance > 100),
    ("fox", lambda f: f.eyebrow_angle < 0 and f.jawline_angle < 90 and f.face_width_ratio < 1.4),
    ("deer", lambda f: f.face_width_ratio < 1.4 and f.jawline_angle < 85),
]


def classify_animal_type(features: FacialFeatures, rng: Optional[random.Random] = None) -> str:
    for animal, matches in ANIMAL_RULES:
        if matches(features):
            return animal
    return (rng or random).choice(ANIMAL_TYPES)


def fallback_features(rng: Optional[random.Random] = None) -> FacialFeatures:
    rng = rng or random.Random()
    return FacialFeatures(
        eyebrow_angle=rng.uniform(-10, 10),
        lip_curvature=rng.uniform(-0.2, 0.2),
        jawline_angle=rng.uniform(80, 100),
        face_width_ratio=1.3 + rng.uniform(0, 0.4),
        eye_distance=80 + rng.uniform(0, 40),
    )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def calculate_eyebrow_angle(left: Sequence[Point], right: Sequence[Point], rng: random.Random) -> float:
    if not left or not right:
        return rng.uniform(-10, 10)
    left_x, left_y = _mean([p[0] for p in left]), _mean([p[1] for p in left])
    right_x, right_y = _mean([p[0] for p in right]), _mean([p[1] for p in right])
    return math.degrees(math.atan2(right_y - left_y, right_x - left_x))


def calculate_lip_curvature(lips: Sequence[Point], rng: random.Random) -> float:
    if len(lips) < 3:
        return rng.uniform(-0.2, 0.2)
    half = len(lips) // 2
    upper, lower = lips[:half], lips[half:]
    if not upper or not lower:
        return rng.uniform(-0.2, 0.2)
    upper_y = _mean([p[1] for p in upper])
    lower_y = _mean([p[1] for p in lower])
    return (lower_y - upper_y) / 100


def calculate_face_width_ratio(points: Sequence[Point], rng: random.Random) -> float:
    if not points:
        return 1.5 + rng.uniform(0, 0.5)
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    height = max(ys) - min(ys)
    if height == 0:
        return 1.5 + rng.uniform(0, 0.5)
    return (max(xs) - min(xs)) / height


def calculate_eye_distance(left: Sequence[Point], right: Sequence[Point], rng: random.Random) -> float:
    if not left or not right:
        return 80 + rng.uniform(0, 40)
    left_center = _mean([p[0] for p in left])
    right_center = _mean([p[0] for p in right])
    return abs(right_center - left_center)


def features_from_landmarks(groups: LandmarkGroups, rng: Optional[random.Random] = None) -> FacialFeatures:
    rng = rng or random.Random()
    return FacialFeatures(
        eyebrow_angle=calculate_eyebrow_angle(groups.left_eyebrow, groups.right_eyebrow, rng),
        lip_curvature=calculate_lip_curvature(groups.lips, rng),
        # Face Mesh gives no stable jaw measurement.
        jawline_angle=rng.uniform(80, 100),
        face_width_ratio=calculate_face_width_ratio(groups.all_points, rng),
        eye_distance=calculate_eye_distance(groups.left_eye, groups.right_eye, rng),
    )


def decode_image(content: bytes) -> np.ndarray:
    image = Image.open(BytesIO(content)).convert("RGB")
    return np.asarray(image)


def detect_landmarks(rgb: np.ndarray) -> Optional[LandmarkGroups]:
    import mediapipe as mp

    h, w = rgb.shape[:2]
    mp_face = mp.solutions.face_mesh
    with mp_face.FaceMesh(static_image_mode=True, max_num_faces=1) as face_mesh:
        results = face_mesh.process(rgb)
    if not results.multi_face_landmarks:
        return None

    lm = results.multi_face_landmarks[0].landmark

    def group(indices: Sequence[int]) -> List[Point]:
        return [(lm[i].x * w, lm[i].y * h) for i in indices if i < len(lm)]

    return LandmarkGroups(
        left_eyebrow=group(LEFT_EYEBROW),
        right_eyebrow=group(RIGHT_EYEBROW),
        lips=group(LIPS),
        left_eye=group(LEFT_EYE),
        right_eye=group(RIGHT_EYE),
        all_points=[(p.x * w, p.y * h) for p in lm],
    )


def extract_features(
    content: Optional[bytes],
    rng: Optional[random.Random] = None,
    detector: Callable[[np.ndarray], Optional[LandmarkGroups]] = detect_landmarks,
) -> FaceAnalysis:
    rng = rng or random.Random()
    groups: Optional[LandmarkGroups] = None

    if content:
        try:
            groups = detector(decode_image(content))
        except OSError as e:
            logger.warning(f"[FaceAnalysis] Action: DECODE, Status: FAIL, Error: {e}")
        except Exception as e:
            logger.warning(f"[FaceAnalysis] Action: DETECT, Status: FAIL, Error: {e}")

    if groups is None:
        logger.warning("[FaceAnalysis] No face detected in image, using fallback features")
        features = fallback_features(rng)
        return FaceAnalysis(features=features, animal_type=classify_animal_type(features, rng), face_detected=False)

    features = features_from_landmarks(groups, rng)
    animal_type = classify_animal_type(features, rng)
    logger.info(f"[FaceAnalysis] Action: EXTRACT, Status: SUCCESS, Animal: {animal_type}")
    return FaceAnalysis(features=features, animal_type=animal_type, face_detected=True)
