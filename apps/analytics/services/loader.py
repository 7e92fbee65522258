import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd
from pandas import DataFrame

from apps.analytics.exceptions import InputError
from apps.analytics.utils import convert_numpy

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = [".csv", ".xlsx", ".xls"]


class DatasetLoader:
    @staticmethod
    def load_dataframe(file_obj, filename: str) -> DataFrame:
        """
        Load DataFrame from an uploaded file object.

        :param file_obj: binary file-like object
        :param filename: original name, used to pick the parser
        :return: DataFrame
        """
        suffix = Path(filename or "").suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise InputError(
                f"Unsupported file format: {suffix or filename}. "
                f"Expected one of: {', '.join(SUPPORTED_EXTENSIONS)}"
            )

        # Django uploads are not recognised as binary handles by the csv sniffer
        buffer = io.BytesIO(file_obj.read())

        try:
            if suffix == ".csv":
                return pd.read_csv(buffer, sep=None, engine="python")
            elif suffix == ".xlsx":
                return pd.read_excel(buffer, engine="openpyxl")
            else:
                return pd.read_excel(buffer, engine="xlrd")
        except (
            ValueError,
            TypeError,
            csv.Error,
            pd.errors.ParserError,
            pd.errors.EmptyDataError,
        ) as e:
            logger.warning("Failed to parse %s: %s", filename, e)
            raise InputError(f"Unable to parse {filename}: {e}") from e

    def load_rows(self, file_obj, filename: str) -> Tuple[List[str], List[Dict]]:
        """
        Parse an upload into headers and JSON-safe rows.

        :param file_obj:
        :param filename:
        :return: (headers, rows)
        """
        df = self.load_dataframe(file_obj, filename)
        df.columns = [str(c) for c in df.columns]

        df = df.astype(object).where(pd.notna(df), None)
        rows = convert_numpy(df.to_dict(orient="records"))

        logger.info("Loaded %d rows and %d columns from %s", len(rows), len(df.columns), filename)
        return list(df.columns), rows
