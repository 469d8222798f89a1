import os
import logging
import sqlite3
from io import BytesIO
from collections import namedtuple
from contextlib import closing

from PIL import Image
from tqdm import tqdm

from map2sqlite import database as db
from map2sqlite.tile_math import tile_key, point_for_tile
from map2sqlite.tile_path import DEFAULT_EXTENSION, TilePathError, parse_tile_path

ImportResult = namedtuple("ImportResult", ["min_zoom", "max_zoom", "imported", "skipped", "failed"])


def encode_tile(path):
    with open(path, 'rb') as f:
        data = f.read()
    # 깨진 이미지는 DB에 넣지 않음
    Image.open(BytesIO(data)).verify()
    return data


def walk_files(map_dir):
    # 로그 재현성을 위해 정렬된 순서로 순회
    for root, dirs, files in os.walk(map_dir):
        dirs.sort()
        for name in sorted(files):
            full_path = os.path.join(root, name)
            yield os.path.relpath(full_path, map_dir)


def import_tiles(conn, map_dir, extension=DEFAULT_EXTENSION, progress=False):
    db.create_tiles_table(conn)

    min_zoom = None
    max_zoom = None
    imported = skipped = failed = 0

    logging.info(f"Importing map tiles at {map_dir}")
    paths = list(walk_files(map_dir))

    for rel_path in tqdm(paths, desc="Importing tiles", unit="file", disable=not progress):
        try:
            tile = parse_tile_path(rel_path, extension)
        except TilePathError as e:
            logging.warning(f"[✗] {rel_path} - {e}")
            failed += 1
            continue

        if tile is None:
            skipped += 1
            continue

        try:
            image = encode_tile(os.path.join(map_dir, rel_path))
        except Exception as e:
            logging.warning(f"[✗] Could not read {rel_path} - {e}")
            failed += 1
            continue

        key = tile_key(tile.zoom, tile.column, tile.row)
        try:
            db.insert_tile(conn, key, tile.zoom, tile.row, tile.column, image)
        except sqlite3.IntegrityError:
            existing = db.find_tile_address(conn, key)
            logging.error(
                f"[✗] {rel_path} - tile key {key} of {tile.zoom}/{tile.row}/{tile.column} "
                f"collides with {existing[0]}/{existing[1]}/{existing[2]}"
            )
            failed += 1
            continue

        logging.debug(f"[✓] {tile.scheme} {tile.zoom}/{tile.row}/{tile.column}")
        imported += 1
        min_zoom = tile.zoom if min_zoom is None else min(min_zoom, tile.zoom)
        max_zoom = tile.zoom if max_zoom is None else max(max_zoom, tile.zoom)

    conn.commit()
    logging.info(f"Imported {imported} tiles ({failed} failed, {skipped} skipped)")
    return ImportResult(min_zoom, max_zoom, imported, skipped, failed)


def max_zoom_extent(conn, max_zoom):
    with closing(conn.cursor()) as cur:
        cur.execute("""
            SELECT min(tile_row), min(tile_column), max(tile_row), max(tile_column)
            FROM tiles WHERE zoom_level = ?
        """, (max_zoom,))
        return cur.fetchone()


def write_map_metadata(conn, min_zoom, max_zoom):
    if min_zoom is None or max_zoom is None:
        logging.warning("No tiles imported, map metadata not written")
        return

    db.add_int_pref(conn, db.MIN_ZOOM_KEY, min_zoom)
    db.add_int_pref(conn, db.MAX_ZOOM_KEY, max_zoom)
    db.add_int_pref(conn, db.TILE_SIDE_LENGTH_KEY, db.TILE_SIDE_LENGTH)

    # 최대 줌 레벨 범위로 커버리지 계산
    min_row, min_col, max_row, max_col = max_zoom_extent(conn, max_zoom)
    top_left = point_for_tile(min_row, min_col, max_zoom)
    bottom_right = point_for_tile(max_row + 1, max_col + 1, max_zoom)
    db.add_float_pref(conn, db.COVERAGE_TOP_LEFT_LATITUDE_KEY, top_left[1])
    db.add_float_pref(conn, db.COVERAGE_TOP_LEFT_LONGITUDE_KEY, top_left[0])
    db.add_float_pref(conn, db.COVERAGE_BOTTOM_RIGHT_LATITUDE_KEY, bottom_right[1])
    db.add_float_pref(conn, db.COVERAGE_BOTTOM_RIGHT_LONGITUDE_KEY, bottom_right[0])

    # 중심점은 단순 중간값 (북반구 기준 근사)
    db.add_float_pref(conn, db.COVERAGE_CENTER_LATITUDE_KEY, top_left[1] + (bottom_right[1] - top_left[1]) / 2)
    db.add_float_pref(conn, db.COVERAGE_CENTER_LONGITUDE_KEY, top_left[0] + (bottom_right[0] - top_left[0]) / 2)
    conn.commit()


def write_attribution(conn, short_name=None, long_description=None,
                      short_attribution=None, long_attribution=None):
    prefs = [
        (db.SHORT_NAME_KEY, short_name),
        (db.LONG_DESCRIPTION_KEY, long_description),
        (db.SHORT_ATTRIBUTION_KEY, short_attribution),
        (db.LONG_ATTRIBUTION_KEY, long_attribution),
    ]
    for name, value in prefs:
        if value is not None:
            db.add_string_pref(conn, name, value)
    conn.commit()
