from __future__ import annotations

import unittest

from monitor.mappers.header_resolver import HeaderResolver, fold_label, match_label
from monitor.validators.header_validator import HeaderNotFoundError, MissingRequiredColumnError

FULL_HEADER = [
    "DESCRIÇÃO",
    "Nº SÉRIE",
    "DISPOSITIVO",
    "LIDO DE",
    "LEITURA ANTERIOR (m³)",
    "LEITURA ATUAL (m³)",
    "CONSUMO (m³)",
    "PROJEÇÃO 30 DIAS (m³)",
    "STATUS",
    "TENDÊNCIA",
]


def _grid_with_header(header: list[str], *, header_index: int) -> list[list[str]]:
    title_rows = [["RELATÓRIO DE CONSUMO"] if i == 0 else [] for i in range(header_index)]
    return [*title_rows, header, ["Apto 101", "A1", "", "", "10", "15", "5", "150", "", "Estável"]]


class TestLabelFolding(unittest.TestCase):
    def test_fold_removes_accents_and_collapses_space(self) -> None:
        self.assertEqual(fold_label("  PROJEÇÃO   30 DIAS "), "projecao 30 dias")


    def test_match_label_priorities(self) -> None:
        self.assertEqual(match_label("Descrição"), "unidade")
        self.assertEqual(match_label("Nº Série"), "numeroserie")
        self.assertEqual(match_label("Lido de"), "dataleitura")
        self.assertEqual(match_label("Leitura Anterior"), "leituraanterior")
        self.assertEqual(match_label("leitura atual (m³)"), "leituraatual")
        self.assertEqual(match_label("Consumo"), "consumo")
        self.assertEqual(match_label("Projecao 30 dias"), "projecao30dias")
        self.assertEqual(match_label("Tendencia"), "tendencia")
        self.assertEqual(match_label("STATUS"), "skip")
        self.assertIsNone(match_label("Bloco"))
        self.assertIsNone(match_label(""))


class TestHeaderResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = HeaderResolver()

    def test_resolves_full_header_at_row_eleven(self) -> None:
        grid = _grid_with_header(FULL_HEADER, header_index=11)

        resolution = self.resolver.resolve(grid)

        self.assertEqual(resolution.header_row_index, 11)
        self.assertEqual(resolution.mapping.index_of("unidade"), 0)
        self.assertEqual(resolution.mapping.index_of("numeroserie"), 1)
        self.assertEqual(resolution.mapping.index_of("dispositivo"), 2)
        self.assertEqual(resolution.mapping.index_of("dataleitura"), 3)
        self.assertEqual(resolution.mapping.index_of("leituraanterior"), 4)
        self.assertEqual(resolution.mapping.index_of("leituraatual"), 5)
        self.assertEqual(resolution.mapping.index_of("consumo"), 6)
        self.assertEqual(resolution.mapping.index_of("projecao30dias"), 7)
        self.assertEqual(resolution.mapping.index_of("tendencia"), 9)
        self.assertEqual(resolution.skipped, (8,))
        self.assertNotIn("skip", resolution.mapping)
        self.assertNotIn(8, resolution.mapping.indices.values())

    def test_first_qualifying_row_wins(self) -> None:
        header = ["DESCRICAO", "LEITURA ANTERIOR", "LEITURA ATUAL", "CONSUMO"]
        grid = [["x"], header, ["descrição", "other"], header]

        resolution = self.resolver.resolve(grid)

        self.assertEqual(resolution.header_row_index, 1)

    def test_marker_inside_concatenated_row_text(self) -> None:
        grid = [["Planilha", "descrição das unidades"]]
        self.assertEqual(self.resolver.find_header_row(grid), 0)

    def test_header_beyond_scan_window_is_not_found(self) -> None:
        grid = [["filler"]] * 20 + [FULL_HEADER]

        with self.assertRaises(HeaderNotFoundError) as ctx:
            self.resolver.resolve(grid)

        self.assertEqual(ctx.exception.rows_scanned, 20)
        self.assertIn("DESCRIÇÃO", ctx.exception.markers)
        self.assertIn("DESCRIÇÃO", str(ctx.exception))
        self.assertEqual(ctx.exception.errors[0].code, "header_not_found")

    def test_header_on_last_scanned_row_is_found(self) -> None:
        grid = [["filler"]] * 19 + [FULL_HEADER, ["Apto 1", "A1", "", "", "1", "2", "1", "", "", ""]]

        resolution = self.resolver.resolve(grid)

        self.assertEqual(resolution.header_row_index, 19)

    def test_empty_grid_is_not_found(self) -> None:
        with self.assertRaises(HeaderNotFoundError):
            self.resolver.resolve([])

    def test_missing_required_columns_are_named_exactly(self) -> None:
        grid = [["DESCRIÇÃO", "Nº SÉRIE", "CONSUMO (m³)", "OBS"], ["Apto 1", "x", "3", ""]]

        with self.assertRaises(MissingRequiredColumnError) as ctx:
            self.resolver.resolve(grid)

        self.assertEqual(ctx.exception.missing, ("leituraanterior", "leituraatual"))
        self.assertEqual(ctx.exception.headers, ("DESCRIÇÃO", "Nº SÉRIE", "CONSUMO (m³)", "OBS"))
        self.assertIn("OBS", str(ctx.exception))
        payload = ctx.exception.to_dict()
        self.assertEqual(
            [error["canonical_field"] for error in payload["errors"]],
            ["leituraanterior", "leituraatual"],
        )
        self.assertIn("consumo", payload["errors"][0]["context"]["resolved_fields"])

    def test_unmatched_columns_become_side_columns(self) -> None:
        header = ["DESCRIÇÃO", "LEITURA ANTERIOR", "LEITURA ATUAL", "CONSUMO", "Bloco", "Observação", "Bloco", ""]

        resolution = self.resolver.resolve([header])

        self.assertEqual(resolution.side_columns, {"Bloco": 4, "Observação": 5})
        self.assertNotIn("Bloco", resolution.mapping)

    def test_side_column_named_like_a_field_is_dropped(self) -> None:
        header = ["DESCRIÇÃO", "LEITURA ANTERIOR", "LEITURA ATUAL", "CONSUMO", "unidade"]

        resolution = self.resolver.resolve([header])

        self.assertEqual(resolution.side_columns, {})

    def test_duplicate_field_takes_last_column(self) -> None:
        header = ["DESCRIÇÃO", "LEITURA ANTERIOR", "LEITURA ATUAL", "CONSUMO (m³)", "CONSUMO AJUSTADO (m³)"]

        resolution = self.resolver.resolve([header])

        self.assertEqual(resolution.mapping.index_of("consumo"), 4)
        self.assertEqual(resolution.side_columns, {"CONSUMO (m³)": 3})

    def test_duplicate_field_across_three_columns(self) -> None:
        header = ["DESCRIÇÃO", "CONSUMO", "LEITURA ANTERIOR", "LEITURA ATUAL", "CONSUMO MÉDIO", "CONSUMO FINAL"]

        resolution = self.resolver.resolve([header])

        self.assertEqual(resolution.mapping.index_of("consumo"), 5)
        self.assertEqual(resolution.side_columns, {"CONSUMO": 1, "CONSUMO MÉDIO": 4})


if __name__ == "__main__":
    unittest.main()
