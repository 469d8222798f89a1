import os
import sys
import logging
import argparse

from map2sqlite import __version__
from map2sqlite.database import DatabaseError, create_db, create_tiles_table
from map2sqlite.importer import import_tiles, write_attribution, write_map_metadata
from map2sqlite.stats import report_stats
from map2sqlite.tile_path import DEFAULT_EXTENSION

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'


def setup_logging(log_file=None, verbose=False):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )


# 인자 파서
def build_parser():
    parser = argparse.ArgumentParser(
        prog="map2sqlite",
        description="Import an OpenStreetMap or ArcGIS tile directory into a SQLite tile database.",
    )
    parser.add_argument("--db", "-db", dest="db", help="출력 DB 파일 경로")
    parser.add_argument("--mapdir", "-mapdir", dest="mapdir", help="타일 디렉터리 (<z>/<x>/<y>.png 또는 L<z>/R<row>/C<col>.png)")
    parser.add_argument("--ext", default=DEFAULT_EXTENSION, help="타일 이미지 확장자 (기본: png)")
    parser.add_argument("--short-name", help="map.shortName")
    parser.add_argument("--long-description", help="map.longDescription")
    parser.add_argument("--short-attribution", help="map.shortAttribution")
    parser.add_argument("--long-attribution", help="map.longAttribution")
    parser.add_argument("--log-file", help="로그 파일 경로")
    parser.add_argument("--progress", action="store_true", help="진행 표시줄 출력")
    parser.add_argument("--verbose", action="store_true", help="타일별 로그 출력")
    parser.add_argument("--version", action="version", version=f"map2sqlite {__version__}")
    return parser


def run(args):
    if args.mapdir is not None and not os.path.isdir(args.mapdir):
        logging.error(f"Map directory does not exist: {args.mapdir}")
        return 1

    try:
        conn = create_db(args.db)
    except DatabaseError as e:
        logging.error(f"Error creating database {args.db} - {e}")
        return 1

    try:
        if args.mapdir is not None:
            result = import_tiles(conn, args.mapdir, extension=args.ext, progress=args.progress)
            write_map_metadata(conn, result.min_zoom, result.max_zoom)
        else:
            # 디렉터리가 없으면 빈 스키마만 생성
            create_tiles_table(conn)
            conn.commit()
        write_attribution(
            conn,
            short_name=args.short_name,
            long_description=args.long_description,
            short_attribution=args.short_attribution,
            long_attribution=args.long_attribution,
        )
        if args.mapdir is not None:
            report_stats(conn, args.db, args.mapdir)
    finally:
        conn.close()

    logging.info(f"[✓] Done: {args.db}")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    logging.info(f"map2sqlite {__version__}")
    if not args.db:
        parser.print_usage(sys.stderr)
        logging.error("Missing required option --db")
        return 1

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
