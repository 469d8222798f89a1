import os
import logging
from contextlib import closing

from map2sqlite.tile_math import point_for_tile


def format_point(point):
    return "{x=%1.6f,y=%1.6f}" % point


def collect_stats(conn, db_path):
    with closing(conn.cursor()) as cur:
        cur.execute("SELECT count(*), min(zoom_level), max(zoom_level) FROM tiles")
        count, min_zoom, max_zoom = cur.fetchone()

        cur.execute("""
            SELECT zoom_level, count(zoom_level),
                   min(tile_row), min(tile_column), max(tile_row), max(tile_column)
            FROM tiles GROUP BY zoom_level ORDER BY zoom_level
        """)
        rows = cur.fetchall()

    levels = []
    for zoom, level_count, min_row, min_col, max_row, max_col in rows:
        levels.append({
            "zoom": zoom,
            "count": level_count,
            "min_row": min_row,
            "min_col": min_col,
            "max_row": max_row,
            "max_col": max_col,
            "top_left": point_for_tile(min_row, min_col, zoom),
            "bottom_right": point_for_tile(max_row + 1, max_col + 1, zoom),
        })

    return {
        "count": count,
        "min_zoom": min_zoom,
        "max_zoom": max_zoom,
        "file_size": os.path.getsize(db_path),
        "levels": levels,
    }


def format_stats(stats, db_path, map_dir):
    lines = [
        "Map statistics",
        "--------------",
        f"map db:            {db_path}",
        f"file size:         {stats['file_size']} bytes",
        f"tile directory:    {map_dir}",
        f"number of tiles:   {stats['count']}",
    ]
    if stats["count"]:
        lines.append(f"zoom levels:       {stats['min_zoom']} - {stats['max_zoom']}")
    for level in stats["levels"]:
        lines.append(
            "zoom_level %2d:    %6d tiles, (%6d,%6d)x(%6d,%6d), %sx%s" % (
                level["zoom"],
                level["count"],
                level["min_row"],
                level["min_col"],
                level["max_row"],
                level["max_col"],
                format_point(level["top_left"]),
                format_point(level["bottom_right"]),
            )
        )
    return lines


def report_stats(conn, db_path, map_dir):
    stats = collect_stats(conn, db_path)
    for line in format_stats(stats, db_path, map_dir):
        logging.info(line)
    return stats
