# Configuration settings for the Live Face Recognition Demo

import os

from dotenv import load_dotenv

load_dotenv()

# --- Face Analysis Model ---
MODEL_NAME = os.getenv("FACE_MODEL_NAME", "buffalo_l")  # InsightFace model pack (detection, landmarks, age/gender, ArcFace).
MODELS_ROOT = os.path.expanduser(os.getenv("FACE_MODELS_ROOT", "~/.insightface"))  # Directory holding models/<MODEL_NAME>/*.onnx
MIN_CONFIDENCE = 0.5  # Minimum detector score for a face to be reported.
DET_SIZE = (640, 640)  # Detector input size.
EXECUTION_PROVIDERS = ['CoreMLExecutionProvider', 'CPUExecutionProvider']

# --- Face Matching ---
MATCH_DISTANCE_THRESHOLD = float(os.getenv("MATCH_DISTANCE_THRESHOLD", "1.1"))  # Euclidean distance on normalized ArcFace embeddings (~cosine similarity 0.4).

# --- Identity Smoothing ---
HISTORY_SIZE = 31  # Age/gender samples kept per recognized identity.

# --- Descriptor Database ---
DESCRIPTORS_SOURCE = os.getenv("DESCRIPTORS_SOURCE", "assets/descriptors.json")  # Local path or http(s) URL.
KEEP_ALL_DESCRIPTORS = os.getenv("KEEP_ALL_DESCRIPTORS", "0").lower() in ("1", "true", "yes")  # Default keeps the first descriptor per label only.
TRAINING_DATA_DIR = "data"  # One subdirectory per label, images inside.
DESCRIPTORS_OUTPUT = "assets/descriptors.json"  # Local file written by prepare_descriptors.py

# --- Camera & Display ---
CAMERA_SOURCE = os.getenv("CAMERA_SOURCE", "1")  # Preferred source (e.g. the rear/environment camera).
FALLBACK_CAMERA_SOURCE = 0  # Used when the preferred source cannot be opened.
DISPLAY_WIDTH = int(os.getenv("DISPLAY_WIDTH", "0"))  # Overlay width in pixels, 0 keeps the native frame size.
WINDOW_NAME = "Face Recognition Demo"

# --- Status API ---
API_PORT = int(os.getenv("PORT", "0"))  # 0 disables the status API.
