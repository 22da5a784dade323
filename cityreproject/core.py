import os
import sys
import logging

from cityreproject.exceptions import ReprojectionError
from cityreproject.georeferencing import Reprojector
from cityreproject.utils import DocumentError, find_input_files, read_document, write_document



# ===== Logger configuration =====
log_level = os.environ.get("LOGLEVEL", "INFO").upper()
log_format = '%(asctime)s - %(levelname)-8s - %(message)s'
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format=log_format,
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)



def _crs_argument(value):
    """Plain numbers on the command line are EPSG codes."""
    if value is None:
        return None
    value = value.strip()
    return int(value) if value.isdigit() else value


class ReprojectionProcessor:
    # ===== Function: __init__ =====
    def __init__(self, args, reprojector=None):
        self.args = args
        self.reprojector = reprojector if reprojector is not None else Reprojector()


    # ===== Function: configure =====
    def configure(self):
        """
        Applies the target and source CRS options to the reprojector. Raises on invalid CRS definitions
        so that nothing is processed with a broken configuration.
        """
        self.reprojector.configure_target(
            _crs_argument(self.args.target_crs),
            srs_name=self.args.target_name,
            force_xy=self.args.target_force_xy,
            keep_height_values=self.args.keep_height_values,
        )
        self.reprojector.configure_source(
            _crs_argument(self.args.source_crs),
            fallback_srs_name=self.args.fallback_crs,
            swap_xy=self.args.swap_xy,
        )

        logger.info(f"Target CRS: {self.reprojector.context.target_srs_name}")
        logger.debug(f"Target CRS definition:\n{self.reprojector.target_crs_as_wkt()}")


    # ===== Function: output_path =====
    def output_path(self, input_file):
        """
        Returns the path the reprojected document is written to: the input file itself when overwriting,
        otherwise a file of the same name inside the output folder.
        """
        if self.args.overwrite_files:
            return input_file

        os.makedirs(self.args.output_folder, exist_ok=True)
        return os.path.join(self.args.output_folder, os.path.basename(input_file))


    # ===== Function: process_file =====
    def process_file(self, input_file):
        """
        Reprojects all features of one document and writes the result. A failing feature aborts the whole
        file and nothing is written for it.

        Args:
            input_file (str): Path of the JSON document.

        Returns:
            bool: True if the document was reprojected and written, False otherwise.
        """
        logger.info(f"🔧 Reprojecting {input_file} ...")

        try:
            document = read_document(input_file)
        except (OSError, DocumentError) as e:
            logger.error(f"❌ Failed to read {input_file}: {e}")
            return False

        try:
            for feature in document.features:
                self.reprojector.reproject_feature(feature)

            if document.bounded_by is not None:
                self.reprojector.reproject_bounding_shape(document.bounded_by)
        except ReprojectionError as e:
            logger.error(f"❌ {input_file}: {e}")
            return False

        document.srs_name = self.reprojector.context.target_srs_name

        output_file = self.output_path(input_file)
        try:
            write_document(document, output_file)
        except OSError as e:
            logger.error(f"❌ Failed to write {output_file}: {e}")
            return False

        logger.info(f"✅ Reprojected {len(document.features)} feature(s) to {output_file}")
        return True


    # ===== Function: run =====
    def run(self):
        """
        Run the reprojection:
        1. Collect input documents
        2. Configure target and source CRS
        3. Reproject and write each document

        Returns:
            bool: True if every document was processed successfully.
        """
        files = find_input_files(self.args.input_file)
        if not files:
            logger.warning(f"⚠️  No input files found for '{self.args.input_file}'.")
            return False

        if not self.args.overwrite_files and not self.args.output_folder:
            logger.error("❌ Either an output folder or --overwrite_files is required.")
            return False

        try:
            self.configure()
        except ReprojectionError as e:
            logger.error(f"❌ Invalid CRS configuration: {e}")
            return False

        logger.info(f"Found {len(files)} file(s) to process.")

        succeeded = 0
        for input_file in files:
            if self.process_file(input_file):
                succeeded += 1

        if succeeded < len(files):
            logger.warning(f"⚠️  {len(files) - succeeded} of {len(files)} file(s) failed.")

        return succeeded == len(files)
