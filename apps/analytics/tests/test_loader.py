import io

import pandas as pd
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase

from apps.analytics.exceptions import InputError
from apps.analytics.services.loader import DatasetLoader


class TestDatasetLoader(SimpleTestCase):
    def setUp(self):
        self.loader = DatasetLoader()

    def test_csv_rows(self):
        upload = io.BytesIO(b"region,sales\nNorth,10\nSouth,\nEast,7.5\n")

        headers, rows = self.loader.load_rows(upload, "sales.csv")

        self.assertEqual(headers, ["region", "sales"])
        self.assertEqual(
            rows,
            [
                {"region": "North", "sales": 10.0},
                {"region": "South", "sales": None},
                {"region": "East", "sales": 7.5},
            ],
        )

    def test_csv_from_django_upload(self):
        upload = SimpleUploadedFile(
            "sales.csv", b"region,sales\nNorth,10\nSouth,4\n", content_type="text/csv"
        )

        headers, rows = self.loader.load_rows(upload, upload.name)

        self.assertEqual(headers, ["region", "sales"])
        self.assertEqual(rows[1], {"region": "South", "sales": 4})

    def test_xlsx_rows(self):
        buffer = io.BytesIO()
        pd.DataFrame({"name": ["a", "b"], "score": [1, 2]}).to_excel(
            buffer, index=False, engine="openpyxl"
        )
        buffer.seek(0)

        headers, rows = self.loader.load_rows(buffer, "Scores.XLSX")

        self.assertEqual(headers, ["name", "score"])
        self.assertEqual(rows, [{"name": "a", "score": 1}, {"name": "b", "score": 2}])

    def test_unsupported_extension(self):
        with self.assertRaises(InputError):
            self.loader.load_rows(io.BytesIO(b"hello"), "notes.txt")

    def test_empty_csv(self):
        with self.assertRaises(InputError):
            self.loader.load_rows(io.BytesIO(b""), "empty.csv")
