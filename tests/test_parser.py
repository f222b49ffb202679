from namecrawler.crawler.parser import SuggestionParser


def test_parses_results_in_order():
    parser = SuggestionParser()
    assert parser.parse('{"version": "v1", "count": 2, "results": ["amy", "ana"]}') == ['amy', 'ana']


def test_missing_results_field_is_empty():
    assert SuggestionParser().parse('{"count": 0}') == []


def test_malformed_bodies_are_empty():
    parser = SuggestionParser()

    assert parser.parse('') == []
    assert parser.parse(None) == []
    assert parser.parse('<html>oops</html>') == []
    assert parser.parse('["amy"]') == []
    assert parser.parse('{"results": "amy"}') == []


def test_non_string_entries_are_skipped():
    assert SuggestionParser().parse('{"results": ["amy", 3, null, {"x": 1}, "ana"]}') == ['amy', 'ana']


def test_custom_results_field():
    parser = SuggestionParser(results_field='names')
    assert parser.extract({'names': ['bob']}) == ['bob']


def test_bytes_bodies():
    parser = SuggestionParser()

    assert parser.parse('{"results": ["zoë"]}'.encode('utf-8')) == ['zoë']
    assert parser.parse(b'{"results": ["\xff"]}') == []
