import argparse
import json
import sys

from .config import get_settings
from .errors import PoiEditorError
from .files import export_file, import_file_sync
from .logging_utils import configure_logging
from .storage import SQLiteKeyValueStorage
from .store import PointStore


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Curate geotagged points of interest stored as GeoJSON",
    )
    parser.add_argument(
        "--storage",
        default=None,
        help="SQLite file holding the saved collection (default: POI_STORAGE_PATH)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log records as JSON lines",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List points, optionally filtered")
    list_cmd.add_argument("--term", default="", help="Substring of the point name")
    list_cmd.add_argument("--category", default="", help="Substring of the category")
    list_cmd.add_argument("--json", action="store_true", help="Print a FeatureCollection")

    add_cmd = sub.add_parser("add", help="Add a point")
    add_cmd.add_argument("--lon", type=float, required=True)
    add_cmd.add_argument("--lat", type=float, required=True)
    add_cmd.add_argument("--name", required=True)
    add_cmd.add_argument("--category", required=True)

    update_cmd = sub.add_parser("update", help="Change a point's name or category")
    update_cmd.add_argument("id")
    update_cmd.add_argument("--name", default=None)
    update_cmd.add_argument("--category", default=None)

    remove_cmd = sub.add_parser("remove", help="Delete a point")
    remove_cmd.add_argument("id")

    import_cmd = sub.add_parser(
        "import", help="Replace all points with a GeoJSON FeatureCollection file"
    )
    import_cmd.add_argument("path")

    export_cmd = sub.add_parser("export", help="Write points as GeoJSON")
    export_cmd.add_argument(
        "--out",
        default=None,
        help="Output file or directory (default: print to stdout)",
    )

    sub.add_parser("categories", help="List distinct categories")
    sub.add_parser("clear", help="Delete all points")
    return parser


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    configure_logging(args.log_level or settings.log_level, json_lines=args.log_json)

    storage = SQLiteKeyValueStorage(args.storage or settings.storage_path)
    try:
        store = PointStore(storage, storage_key=settings.storage_key)
        return _run(args, store, settings)
    except PoiEditorError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        storage.close()


def _run(args, store, settings):
    if args.command == "list":
        store.set_filter(args.term, args.category)
        features = store.filtered_view()
        if args.json:
            from .models import to_feature_collection

            print(json.dumps(to_feature_collection(features), indent=2))
        else:
            for f in features:
                print(f"{f.id}\t{f.longitude:.4f},{f.latitude:.4f}\t{f.name}\t{f.category}")
        return 0

    if args.command == "add":
        feature = store.add([args.lon, args.lat], {"name": args.name, "category": args.category})
        print(feature.id)
        return 0

    if args.command == "update":
        partial = {}
        if args.name is not None:
            partial["name"] = args.name
        if args.category is not None:
            partial["category"] = args.category
        store.update(args.id, partial)
        return 0

    if args.command == "remove":
        store.remove(args.id)
        return 0

    if args.command == "import":
        result = import_file_sync(store, args.path)
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    if args.command == "export":
        if args.out:
            path = export_file(store, args.out, filename=settings.export_filename)
            print(str(path))
        else:
            print(store.export_collection())
        return 0

    if args.command == "categories":
        for category in store.available_categories():
            print(category)
        return 0

    if args.command == "clear":
        store.clear()
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
