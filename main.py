import sys
import argparse
from cityreproject.core import ReprojectionProcessor



# ===== Function: parse_args =====
def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Reproject the coordinates of city model documents into a target CRS.")
    parser.add_argument("-i", "--input_file", required=True, help="Document, folder or glob pattern of .json documents to process")
    parser.add_argument("-o", "--output_folder", default=None, help="Folder to save reprojected documents")
    parser.add_argument("--overwrite_files", action="store_true", help="Overwrite the input documents instead of writing to the output folder")

    parser.add_argument("--target_crs", required=True, help="Target CRS as EPSG code (e.g. 4326), SRS identifier or WKT")
    parser.add_argument("--target_name", default=None, help="SRS name written to the output (default: the target CRS identifier)")
    parser.add_argument("--target_force_xy", action="store_true", help="Write target coordinates easting/longitude first")
    parser.add_argument("--keep_height_values", action="store_true", help="Do not transform height values")

    parser.add_argument("--source_crs", default=None, help="Source CRS overriding any SRS declared in the input")
    parser.add_argument("--fallback_crs", default=None, help="Source CRS used where the input declares none")
    parser.add_argument("--swap_xy", action="store_true", help="Input coordinates are stored in (y, x) order")

    return parser.parse_args(argv)


# ===== Function: main =====
if __name__ == "__main__":
    args = parse_args()

    processor = ReprojectionProcessor(args)
    sys.exit(0 if processor.run() else 1)
