import os
import logging
import sqlite3
from contextlib import closing

# 필수 메타데이터 키
MIN_ZOOM_KEY = "map.minZoom"
MAX_ZOOM_KEY = "map.maxZoom"
TILE_SIDE_LENGTH_KEY = "map.tileSideLength"

# 커버리지 (선택)
COVERAGE_TOP_LEFT_LATITUDE_KEY = "map.coverage.topLeft.latitude"
COVERAGE_TOP_LEFT_LONGITUDE_KEY = "map.coverage.topLeft.longitude"
COVERAGE_BOTTOM_RIGHT_LATITUDE_KEY = "map.coverage.bottomRight.latitude"
COVERAGE_BOTTOM_RIGHT_LONGITUDE_KEY = "map.coverage.bottomRight.longitude"
COVERAGE_CENTER_LATITUDE_KEY = "map.coverage.center.latitude"
COVERAGE_CENTER_LONGITUDE_KEY = "map.coverage.center.longitude"

# 저작권 표시 (선택)
SHORT_NAME_KEY = "map.shortName"
LONG_DESCRIPTION_KEY = "map.longDescription"
SHORT_ATTRIBUTION_KEY = "map.shortAttribution"
LONG_ATTRIBUTION_KEY = "map.longAttribution"

TILE_SIDE_LENGTH = 256


class DatabaseError(RuntimeError):
    pass


def create_db(path):
    # 기존 DB 파일은 항상 삭제 후 새로 생성
    try:
        if os.path.lexists(path):
            os.remove(path)
    except OSError as e:
        raise DatabaseError(f"Could not remove {path}: {e}") from e

    logging.info(f"Creating {path}")
    try:
        conn = sqlite3.connect(path)
    except sqlite3.Error as e:
        raise DatabaseError(f"Could not create {path}: {e}") from e

    try:
        conn.execute("CREATE TABLE metadata (name TEXT PRIMARY KEY, value TEXT)")
        conn.commit()
    except sqlite3.Error as e:
        conn.close()
        raise DatabaseError(f"Could not create {path}: {e}") from e
    return conn


def create_tiles_table(conn):
    conn.execute("""
        CREATE TABLE tiles (
            tile_data INTEGER PRIMARY KEY,
            zoom_level INTEGER,
            tile_row INTEGER,
            tile_column INTEGER,
            image BLOB
        )
    """)


# SQLite INTEGER는 부호 있는 64bit: zoom >= 128 키는 같은 비트의 음수로 저장
def to_sqlite_key(key):
    return key - (1 << 64) if key >= 1 << 63 else key


def insert_tile(conn, key, zoom, row, column, image):
    conn.execute(
        "INSERT INTO tiles (tile_data, zoom_level, tile_row, tile_column, image) VALUES (?, ?, ?, ?, ?)",
        (to_sqlite_key(key), zoom, row, column, sqlite3.Binary(image)),
    )


def find_tile_address(conn, key):
    with closing(conn.cursor()) as cur:
        cur.execute("SELECT zoom_level, tile_row, tile_column FROM tiles WHERE tile_data = ?", (to_sqlite_key(key),))
        return cur.fetchone()


def fetch_tile_image(conn, key):
    with closing(conn.cursor()) as cur:
        cur.execute("SELECT image FROM tiles WHERE tile_data = ?", (to_sqlite_key(key),))
        row = cur.fetchone()
    return row[0] if row else None


# 메타데이터는 문자열로만 저장 (덮어쓰기 없음)
def add_string_pref(conn, name, value):
    conn.execute("INSERT INTO metadata (name, value) VALUES (?, ?)", (name, value))


def add_float_pref(conn, name, value):
    add_string_pref(conn, name, "%f" % value)


def add_int_pref(conn, name, value):
    add_string_pref(conn, name, "%d" % value)


def read_metadata(conn):
    with closing(conn.cursor()) as cur:
        cur.execute("SELECT name, value FROM metadata ORDER BY rowid")
        return dict(cur.fetchall())
