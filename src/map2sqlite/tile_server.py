import sqlite3
import argparse
from contextlib import closing

from flask import Flask, Response, abort, jsonify

from map2sqlite.database import fetch_tile_image, read_metadata
from map2sqlite.tile_math import tile_key

DEFAULT_PORT = 8090


def create_app(db_path):
    app = Flask(__name__)
    app.config["MAP_DB_PATH"] = db_path

    def connect():
        return closing(sqlite3.connect(app.config["MAP_DB_PATH"]))

    # ✅ 타일 조회 (x = column, y = row, y축 반전 없음)
    @app.route("/tiles/<int:z>/<int:x>/<int:y>.png")
    def serve_tile(z, x, y):
        with connect() as conn:
            tile_data = fetch_tile_image(conn, tile_key(z, x, y))
        if tile_data is None:
            return abort(404)
        return Response(tile_data, mimetype='image/png')

    @app.route("/metadata")
    def metadata():
        with connect() as conn:
            return jsonify(read_metadata(conn))

    return app


def main(argv=None):
    parser = argparse.ArgumentParser(prog="map2sqlite-serve")
    parser.add_argument('--db', required=True, help='Path to the tile database')
    parser.add_argument('--host', default="0.0.0.0", help='Host to bind')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT, help='Port to run the server on')
    args = parser.parse_args(argv)

    app = create_app(args.db)
    app.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
