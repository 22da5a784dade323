import os
import glob
from typing import List


def find_input_files(path: str, extension: str = ".json") -> List[str]:
    """
    Expand an input argument into a sorted list of document files.

    Args:
        path: A file, a directory (searched recursively) or a glob pattern
        extension: File extension of documents inside directories and glob matches

    Returns:
        List of file paths
    """
    if os.path.isfile(path):
        return [path]

    files = []
    if os.path.isdir(path):
        for root, dirs, filenames in os.walk(path):
            dirs.sort()
            for filename in sorted(filenames):
                if filename.lower().endswith(extension):
                    files.append(os.path.join(root, filename))
        return files

    for file_path in glob.glob(path, recursive=True):
        if os.path.isfile(file_path) and file_path.lower().endswith(extension):
            files.append(file_path)

    return sorted(files)
