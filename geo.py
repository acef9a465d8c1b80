"""Geospatial helpers for issue locations."""
import math

EARTH_RADIUS_M = 6371e3
METERS_PER_DEGREE_LAT = 111000

# Simplified ward boundaries, polygons as (longitude, latitude) pairs
WARDS = {
    'Ward 12': {
        'center': (72.8777, 19.0760),
        'bounds': [(72.870, 19.070), (72.885, 19.070), (72.885, 19.082), (72.870, 19.082)],
    },
    'Ward 15': {
        'center': (72.8820, 19.0822),
        'bounds': [(72.875, 19.075), (72.890, 19.075), (72.890, 19.090), (72.875, 19.090)],
    },
}


def to_geojson_point(latitude, longitude):
    # GeoJSON orders coordinates as [longitude, latitude]
    return {'type': 'Point', 'coordinates': [longitude, latitude]}


def from_geojson_point(point):
    longitude, latitude = point['coordinates'][:2]
    return {'latitude': latitude, 'longitude': longitude}


def haversine_distance(lat1, lng1, lat2, lng2):
    """Great-circle distance between two points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + \
        math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def format_distance(meters):
    if meters < 1000:
        return f'{round(meters)}m'
    return f'{meters / 1000:.1f}km'


def bounding_box(latitude, longitude, radius_m):
    """Approximate box around a point; fine for city-scale radii.

    ``lng_ranges`` holds one ``(min, max)`` pair, or two when the box
    crosses the antimeridian.
    """
    lat_offset = radius_m / METERS_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(latitude))
    if cos_lat > 0:
        lng_offset = radius_m / (METERS_PER_DEGREE_LAT * cos_lat)
    else:
        lng_offset = 180

    min_lng = longitude - lng_offset
    max_lng = longitude + lng_offset
    if lng_offset >= 180:
        lng_ranges = [(-180, 180)]
    elif min_lng < -180:
        lng_ranges = [(min_lng + 360, 180), (-180, max_lng)]
    elif max_lng > 180:
        lng_ranges = [(min_lng, 180), (-180, max_lng - 360)]
    else:
        lng_ranges = [(min_lng, max_lng)]

    return {
        'min_lat': max(latitude - lat_offset, -90),
        'max_lat': min(latitude + lat_offset, 90),
        'min_lng': min_lng,
        'max_lng': max_lng,
        'lng_ranges': lng_ranges,
    }


def is_valid_coordinates(latitude, longitude):
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        return False
    if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
        return False
    if math.isnan(latitude) or math.isnan(longitude):
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def point_in_polygon(point, polygon):
    """Ray casting test; ``point`` and vertices are (x, y) pairs."""
    x, y = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def polygon_center(polygon):
    total_x = sum(x for x, _ in polygon)
    total_y = sum(y for _, y in polygon)
    return total_x / len(polygon), total_y / len(polygon)


def ward_for(latitude, longitude, wards=None):
    for ward_name, ward in (wards or WARDS).items():
        if point_in_polygon((longitude, latitude), ward['bounds']):
            return ward_name
    return None
