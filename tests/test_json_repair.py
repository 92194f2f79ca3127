"""Tests for redigir.json_repair — near-JSON repair that fails cleanly."""

from __future__ import annotations

import pytest

from redigir.json_repair import extract_json_body, repair_and_parse, split_string_literals


class TestRepairAndParse:
    def test_valid_json(self):
        result = repair_and_parse('{"totalScore": 800, "competencies": []}')
        assert result.ok is True
        assert result.value == {"totalScore": 800, "competencies": []}
        assert result.error is None

    def test_trailing_commas(self):
        result = repair_and_parse('{"a": [1, 2, 3,], "b": {"c": 1,},}')
        assert result.ok
        assert result.value == {"a": [1, 2, 3], "b": {"c": 1}}

    def test_unquoted_keys(self):
        result = repair_and_parse('{totalScore: 720, competencies: [{score: 160}]}')
        assert result.ok
        assert result.value == {"totalScore": 720, "competencies": [{"score": 160}]}

    def test_single_quoted_strings(self):
        result = repair_and_parse("{'feedback': 'Bom texto', 'score': 120}")
        assert result.ok
        assert result.value == {"feedback": "Bom texto", "score": 120}

    def test_single_quotes_with_inner_double_quote(self):
        result = repair_and_parse("{'feedback': 'Use \"ademais\" com cuidado'}")
        assert result.ok
        assert result.value == {"feedback": 'Use "ademais" com cuidado'}

    def test_python_literals(self):
        result = repair_and_parse("{'ok': True, 'extra': None}")
        assert result.ok
        assert result.value == {"ok": True, "extra": None}

    def test_all_mistakes_together(self):
        raw = "Claro! Segue a avaliação:\n```json\n{totalScore: 850, 'competencies': [{'score': 200,},],}\n```"
        result = repair_and_parse(raw)
        assert result.ok
        assert result.value == {"totalScore": 850, "competencies": [{"score": 200}]}

    def test_json_embedded_in_prose(self):
        result = repair_and_parse('A nota final é {"totalScore": 600} conforme a grade.')
        assert result.value == {"totalScore": 600}

    def test_top_level_list(self):
        assert repair_and_parse("[{score: 40}, {score: 80},]").value == [{"score": 40}, {"score": 80}]

    def test_key_like_text_inside_string_untouched(self):
        result = repair_and_parse('{"feedback": "Bom texto, nota: alta", "score": 10,}')
        assert result.ok
        assert result.value == {"feedback": "Bom texto, nota: alta", "score": 10}

    def test_curly_quotes_inside_string_kept(self):
        result = repair_and_parse('{"feedback": "Cite “Vidas Secas” no texto", "score": 10,}')
        assert result.ok
        assert result.value["feedback"] == "Cite “Vidas Secas” no texto"

    def test_curly_quotes_as_delimiters(self):
        result = repair_and_parse("{“feedback”: “Bom”, “score”: 10}")
        assert result.value == {"feedback": "Bom", "score": 10}

    @pytest.mark.parametrize("raw,feedback", [
        ("{'feedback': 'Conclusão, ponto: fraco', score: 40,}", "Conclusão, ponto: fraco"),
        ('{feedback: "Repertório: True, None, False", "score": 40}', "Repertório: True, None, False"),
        ("{'feedback': 'Trecho [citado,] e {chave,}', 'score': 40}", "Trecho [citado,] e {chave,}"),
        ('{"feedback": "Faltou a tese, ou seja: o texto,}", score: 40}', "Faltou a tese, ou seja: o texto,}"),
    ])
    def test_string_contents_survive_each_repair(self, raw, feedback):
        result = repair_and_parse(raw)
        assert result.ok, result.error
        assert result.value == {"feedback": feedback, "score": 40}

    def test_apostrophe_inside_double_quoted_string(self):
        result = repair_and_parse('{"feedback": "A d\'água é bom exemplo", "score": 1,}')
        assert result.value == {"feedback": "A d'água é bom exemplo", "score": 1}

    def test_raw_newline_inside_string(self):
        result = repair_and_parse('{"feedback": "linha um\nlinha dois", "score": 1,}')
        assert result.value["feedback"] == "linha um\nlinha dois"

    @pytest.mark.parametrize("raw", [
        None,
        "",
        "   ",
        "Não consegui avaliar a redação.",
        '{"totalScore": 850, "competencies": [',
        "{totalScore: 850 competencies 12}",
    ])
    def test_malformed_fails_cleanly(self, raw):
        result = repair_and_parse(raw)
        assert result.ok is False
        assert result.value is None
        assert result.error


class TestSplitStringLiterals:
    def test_runs_alternate(self):
        runs = split_string_literals("{'a': 1, \"b\": 'x, y: z'}")
        assert runs == [
            (False, "{"), (True, '"a"'), (False, ": 1, "), (True, '"b"'),
            (False, ": "), (True, '"x, y: z"'), (False, "}"),
        ]

    def test_escaped_quote_stays_inside(self):
        assert split_string_literals('"a\\"b"') == [(True, '"a\\"b"')]

    def test_unterminated_literal_left_open(self):
        assert split_string_literals('{"a": "sem fim') == [(False, "{"), (True, '"a"'), (False, ": "), (True, '"sem fim')]


class TestExtractJsonBody:
    def test_fenced(self):
        assert extract_json_body('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_without_language(self):
        assert extract_json_body('```\n[1, 2]\n```') == "[1, 2]"

    def test_outermost_structure_wins(self):
        assert extract_json_body('nota: {"c": [1, 2]} fim') == '{"c": [1, 2]}'

    def test_none_when_no_structure(self):
        assert extract_json_body("sem json aqui") is None
