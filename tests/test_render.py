from workline_search.render import (
    RETRY_MESSAGE,
    error_message,
    format_date,
    format_results,
    help_blocks,
    no_results_blocks,
)
from workline_search.types import SOURCE_EXTERNAL, ArticleRecord


def _result(i, **kwargs):
    return ArticleRecord(
        url=f"https://www.flexos.work/the-workline/post-{i}",
        title=f"Post {i}",
        summary=f"Summary {i}",
        score=10 - i,
        **kwargs,
    )


def test_format_results_layout():
    results = [
        _result(1, topics=("hybrid", "leadership", "culture", "metrics"), publish_date="2024-03-01T09:00:00Z"),
        _result(2, source=SOURCE_EXTERNAL),
    ]

    blocks = format_results("hybrid", results)["blocks"]

    assert blocks[0]["text"]["text"] == '*Found 2 results for "hybrid"*'
    assert blocks[1] == {"type": "divider"}

    article = blocks[2]
    assert article["text"]["text"] == "*<https://www.flexos.work/the-workline/post-1|Post 1>*\nSummary 1"
    assert article["accessory"]["url"] == "https://www.flexos.work/the-workline/post-1"
    assert article["accessory"]["action_id"] == "read_0"

    meta = blocks[3]["elements"][0]["text"]
    assert "hybrid, leadership, culture" in meta
    assert "metrics" not in meta
    assert "Mar 01, 2024" in meta

    # second result has no topics or date, so no context block follows it
    assert blocks[4] == {"type": "divider"}
    assert blocks[5]["accessory"]["action_id"] == "read_1"
    assert blocks[6] == {"type": "divider"}
    assert blocks[7]["type"] == "context"
    assert len(blocks) == 8


def test_single_result_heading_is_singular():
    blocks = format_results("office", [_result(1)])["blocks"]
    assert blocks[0]["text"]["text"] == '*Found 1 result for "office"*'


def test_empty_results_render_suggestions():
    assert format_results("nothing", []) == no_results_blocks("nothing")
    text = no_results_blocks("nothing")["blocks"][0]["text"]["text"]
    assert '"nothing"' in text


def test_unparseable_date_is_omitted():
    assert format_date("not a date at all") is None
    assert format_date(None) is None
    blocks = format_results("x", [_result(1, publish_date="someday")])["blocks"]
    assert all(b["type"] != "context" for b in blocks[:-1])


def test_help_and_error_messages():
    blocks = help_blocks()["blocks"]
    assert "Welcome to Workline Search" in blocks[0]["text"]["text"]
    assert "`/workline hybrid work`" in blocks[2]["text"]["text"]
    assert error_message() == {"text": RETRY_MESSAGE}
