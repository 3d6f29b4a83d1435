import pathlib

PROJECT_ROOT_DIR = pathlib.Path(__file__).parent.parent
