import math

ZOOM_MASK = 0xFF
XY_MASK = 0x0FFFFFFF
XY_BITS = 28


# zoom/x/y → 64bit 타일 키 (zoom 8bit, x 28bit, y 28bit)
def tile_key(zoom, x, y):
    zoom = int(zoom) & ZOOM_MASK
    x = int(x) & XY_MASK
    y = int(y) & XY_MASK
    return (zoom << 56) | (x << XY_BITS) | y


# 64bit 키 → (zoom, x, y)
def split_tile_key(key):
    zoom = (key >> 56) & ZOOM_MASK
    x = (key >> XY_BITS) & XY_MASK
    y = key & XY_MASK
    return zoom, x, y


# 타일 좌표 → 위경도
def num2deg(x, y, zoom):
    n = 2.0 ** zoom
    lon_deg = x / n * 360.0 - 180.0
    lat_rad = math.atan(math.sinh(math.pi * (1 - 2 * y / n)))
    lat_deg = math.degrees(lat_rad)
    return lat_deg, lon_deg


# 타일 좌상단 좌표 (lon, lat)
def point_for_tile(row, column, zoom):
    lat, lon = num2deg(column, row, zoom)
    return lon, lat
