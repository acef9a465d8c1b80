"""Image classification used to suggest a category and title for a report.

The suggestion is a convenience only. Any failure is logged and ``None`` is
returned so the reporter falls back to picking a category by hand.
"""
import base64
import logging

import requests

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS = {
    'pothole': ['pothole', 'hole', 'crack'],
    'streetlight': ['light', 'lamp', 'bulb', 'pole', 'wire', 'transformer'],
    'garbage': ['garbage', 'waste', 'trash', 'bin', 'dump', 'bottle'],
    'water': ['water', 'flood', 'drain', 'sewage', 'pipe', 'leak'],
    'graffiti': ['graffiti', 'paint', 'spray'],
    'road': ['road', 'pavement', 'street', 'sidewalk', 'traffic', 'signal', 'sign'],
}

SUGGESTED_TITLES = {
    'pothole': 'Road Pothole Issue',
    'crack': 'Road Surface Crack',
    'garbage': 'Garbage Collection Required',
    'pole': 'Electric Pole Issue',
    'light': 'Street Light Problem',
    'wire': 'Exposed Wire Issue',
    'water': 'Water Logging Issue',
    'tree': 'Fallen Tree Problem',
    'signal': 'Traffic Signal Malfunction',
    'graffiti': 'Graffiti Removal Request',
}


def best_match(detections):
    """Pick the highest scoring detection whose label maps onto a category."""
    match = {'category': 'other', 'confidence': 0.0, 'label': ''}
    for detection in detections:
        label = str(detection.get('label', '')).lower()
        score = float(detection.get('score', 0))
        for category, keywords in CATEGORY_KEYWORDS.items():
            if any(keyword in label for keyword in keywords) and score > match['confidence']:
                match = {'category': category, 'confidence': score, 'label': label}
    return match


def suggested_title(label):
    for keyword, title in SUGGESTED_TITLES.items():
        if keyword in label:
            return title
    return 'General Issue Report'


def classify_image(image_bytes, url, token, timeout=15, enabled=True):
    if not enabled:
        return None

    try:
        response = requests.post(
            url,
            headers={'Authorization': f'Bearer {token}'},
            json={'inputs': base64.b64encode(image_bytes).decode('ascii')},
            timeout=timeout
        )
        response.raise_for_status()
        detections = response.json() or []
        if not isinstance(detections, list):
            raise ValueError(f'Unexpected classifier payload: {detections!r}')
    except (requests.RequestException, ValueError) as e:
        logger.warning('Image classification failed: %s', e)
        return None

    match = best_match(detections)
    logger.info('Image classified as %s (%.2f) from %d detections',
                match['category'], match['confidence'], len(detections))
    return {
        'category': match['category'],
        'confidence': match['confidence'],
        'originalLabel': match['label'],
        'suggestedTitle': suggested_title(match['label']),
    }
