import os
import logging
from contextlib import closing

import pytest

from conftest import make_png, write_tile
from map2sqlite import database as db
from map2sqlite.importer import import_tiles, write_attribution, write_map_metadata
from map2sqlite.tile_math import tile_key


@pytest.fixture
def conn(tmp_path):
    with closing(db.create_db(str(tmp_path / "map.sqlite"))) as conn:
        yield conn


def tile_rows(conn):
    with closing(conn.cursor()) as cur:
        cur.execute("SELECT tile_data, zoom_level, tile_row, tile_column FROM tiles ORDER BY tile_data")
        return cur.fetchall()


def test_import_slippy_pyramid(conn, map_dir):
    for rel in ["0/0/0.png", "1/0/0.png", "1/1/1.png"]:
        write_tile(map_dir, rel)

    result = import_tiles(conn, str(map_dir))
    write_map_metadata(conn, result.min_zoom, result.max_zoom)

    assert (result.min_zoom, result.max_zoom, result.imported) == (0, 1, 3)
    assert len(tile_rows(conn)) == 3

    metadata = db.read_metadata(conn)
    assert metadata[db.MIN_ZOOM_KEY] == "0"
    assert metadata[db.MAX_ZOOM_KEY] == "1"
    assert metadata[db.TILE_SIDE_LENGTH_KEY] == "256"


def test_row_and_column_axes(conn, map_dir):
    data = make_png((0, 255, 0))
    write_tile(map_dir, "5/7/3.png", data)
    write_tile(map_dir, "L06/R0000000a/C0000000b.png")

    import_tiles(conn, str(map_dir))

    rows = tile_rows(conn)
    assert (tile_key(5, 7, 3), 5, 3, 7) in rows
    assert (tile_key(6, 0xb, 0xa), 6, 0xa, 0xb) in rows
    assert db.fetch_tile_image(conn, tile_key(5, 7, 3)) == data


def test_coverage_from_max_zoom_extent(conn, map_dir):
    write_tile(map_dir, "0/0/0.png")
    write_tile(map_dir, "2/1/0.png")
    write_tile(map_dir, "2/2/1.png")

    result = import_tiles(conn, str(map_dir))
    write_map_metadata(conn, result.min_zoom, result.max_zoom)

    metadata = db.read_metadata(conn)
    # zoom 2, rows 0..1, columns 1..2
    assert metadata[db.COVERAGE_TOP_LEFT_LONGITUDE_KEY] == "-90.000000"
    assert metadata[db.COVERAGE_TOP_LEFT_LATITUDE_KEY] == "85.051129"
    assert metadata[db.COVERAGE_BOTTOM_RIGHT_LONGITUDE_KEY] == "90.000000"
    assert float(metadata[db.COVERAGE_BOTTOM_RIGHT_LATITUDE_KEY]) == pytest.approx(0.0, abs=1e-6)
    assert metadata[db.COVERAGE_CENTER_LONGITUDE_KEY] == "0.000000"
    assert float(metadata[db.COVERAGE_CENTER_LATITUDE_KEY]) == pytest.approx(42.525564, abs=1e-6)


def test_metadata_order_mandatory_first(conn, map_dir):
    write_tile(map_dir, "3/4/4.png")
    result = import_tiles(conn, str(map_dir))
    write_map_metadata(conn, result.min_zoom, result.max_zoom)

    assert list(db.read_metadata(conn)) == [
        db.MIN_ZOOM_KEY,
        db.MAX_ZOOM_KEY,
        db.TILE_SIDE_LENGTH_KEY,
        db.COVERAGE_TOP_LEFT_LATITUDE_KEY,
        db.COVERAGE_TOP_LEFT_LONGITUDE_KEY,
        db.COVERAGE_BOTTOM_RIGHT_LATITUDE_KEY,
        db.COVERAGE_BOTTOM_RIGHT_LONGITUDE_KEY,
        db.COVERAGE_CENTER_LATITUDE_KEY,
        db.COVERAGE_CENTER_LONGITUDE_KEY,
    ]


def test_corrupt_tile_is_skipped(conn, map_dir, caplog):
    write_tile(map_dir, "1/0/0.png")
    write_tile(map_dir, "2/1/1.png")
    write_tile(map_dir, "1/1/1.png", b"definitely not a png")

    with caplog.at_level(logging.WARNING):
        result = import_tiles(conn, str(map_dir))

    assert len(tile_rows(conn)) == 2
    assert (result.min_zoom, result.max_zoom) == (1, 2)
    assert (result.imported, result.failed) == (2, 1)
    assert any("1/1/1.png" in r.getMessage().replace("\\", "/") for r in caplog.records)


def test_corrupt_tile_does_not_widen_zoom_range(conn, map_dir):
    write_tile(map_dir, "1/0/0.png")
    write_tile(map_dir, "1/1/1.png")
    write_tile(map_dir, "9/0/0.png", b"")

    result = import_tiles(conn, str(map_dir))

    assert (result.min_zoom, result.max_zoom) == (1, 1)


def test_non_tiles_skipped_and_bad_names_logged(conn, map_dir, caplog):
    write_tile(map_dir, "0/0/0.png")
    write_tile(map_dir, "0/0/notes.txt", b"hello")
    write_tile(map_dir, "0/x/0.png")

    with caplog.at_level(logging.WARNING):
        result = import_tiles(conn, str(map_dir))

    assert (result.imported, result.skipped, result.failed) == (1, 1, 1)
    assert any("not a decimal int" in r.getMessage() for r in caplog.records)


def test_key_collision_keeps_first_tile(conn, map_dir, caplog):
    first = make_png((1, 2, 3))
    write_tile(map_dir, "1/0/0.png", first)
    write_tile(map_dir, "L1/R0/C0.png", make_png((4, 5, 6)))

    with caplog.at_level(logging.ERROR):
        result = import_tiles(conn, str(map_dir))

    assert (result.imported, result.failed) == (1, 1)
    assert db.fetch_tile_image(conn, tile_key(1, 0, 0)) == first
    assert any("collides with 1/0/0" in r.getMessage() for r in caplog.records)


def test_empty_directory_writes_no_map_metadata(conn, map_dir, caplog):
    with caplog.at_level(logging.WARNING):
        result = import_tiles(conn, str(map_dir))
        write_map_metadata(conn, result.min_zoom, result.max_zoom)

    assert result.min_zoom is None and result.max_zoom is None
    assert tile_rows(conn) == []
    assert db.read_metadata(conn) == {}
    assert "No tiles imported" in caplog.text


def test_attribution_only_given_keys(conn):
    write_attribution(conn, short_name="OSM", long_attribution="© OpenStreetMap contributors")

    assert db.read_metadata(conn) == {
        db.SHORT_NAME_KEY: "OSM",
        db.LONG_ATTRIBUTION_KEY: "© OpenStreetMap contributors",
    }


def test_unreadable_file_is_skipped(conn, map_dir, caplog):
    write_tile(map_dir, "1/0/0.png")
    broken = map_dir / "1" / "1" / "1.png"
    broken.parent.mkdir(parents=True)
    try:
        os.symlink(str(map_dir / "gone.png"), str(broken))
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")

    with caplog.at_level(logging.WARNING):
        result = import_tiles(conn, str(map_dir))

    assert (result.imported, result.failed) == (1, 1)
    assert len(tile_rows(conn)) == 1
    assert any("Could not read" in r.getMessage() and "No such file" in r.getMessage()
               for r in caplog.records)


def test_high_zoom_tile_is_stored(conn, map_dir):
    data = make_png((7, 7, 7))
    write_tile(map_dir, "200/0/0.png", data)

    result = import_tiles(conn, str(map_dir))
    write_map_metadata(conn, result.min_zoom, result.max_zoom)

    key = tile_key(200, 0, 0)
    assert key >= 1 << 63
    assert (result.min_zoom, result.max_zoom, result.imported) == (200, 200, 1)
    assert tile_rows(conn) == [(db.to_sqlite_key(key), 200, 0, 0)]
    assert db.fetch_tile_image(conn, key) == data
    assert db.read_metadata(conn)[db.MAX_ZOOM_KEY] == "200"


def test_to_sqlite_key_keeps_low_keys():
    assert db.to_sqlite_key(tile_key(30, 5, 5)) == tile_key(30, 5, 5)
    assert db.to_sqlite_key(1 << 63) == -(1 << 63)
    assert db.to_sqlite_key((1 << 64) - 1) == -1
