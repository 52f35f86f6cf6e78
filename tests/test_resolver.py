import pytest

from harvester.errors import BrowserError
from harvester.extraction.resolver import SelectorResolver
from harvester.extraction.selectors import (
    Candidate,
    FieldKind,
    parse_content_image,
    parse_price,
    parse_title,
)
from harvester.normalize import parse_count

from tests.fakes import FakeElement


class BrokenScope:
    async def find_all(self, locator):
        raise BrowserError("invalid selector")


def scope(**children):
    return FakeElement(children={f"css={k}": v for k, v in children.items()})


async def test_noise_candidate_is_skipped_for_next_valid_one():
    resolver = SelectorResolver({FieldKind.AUTHOR: (Candidate("css=a"), Candidate("css=b"))})
    container = scope(a=[FakeElement("Like")], b=[FakeElement("Jane Doe")])

    resolution = await resolver.resolve(container, FieldKind.AUTHOR)

    assert resolution.value == "Jane Doe"
    assert resolution.locator == "css=b"


async def test_first_element_with_content_decides_candidate():
    resolver = SelectorResolver({FieldKind.AUTHOR: (Candidate("css=a"),)})
    container = scope(a=[FakeElement("   "), FakeElement("Jane"), FakeElement("John")])

    assert await resolver.resolve_value(container, FieldKind.AUTHOR) == "Jane"


async def test_exhausted_candidates_yield_none():
    resolver = SelectorResolver({FieldKind.AUTHOR: (Candidate("css=a"), Candidate("css=b"))})
    assert await resolver.resolve(scope(), FieldKind.AUTHOR) is None
    assert await resolver.resolve(scope(), FieldKind.LOCATION) is None


async def test_failing_query_and_stale_elements_are_absorbed():
    resolver = SelectorResolver({FieldKind.TEXT: (Candidate("css=a"),)})
    assert await resolver.resolve(BrokenScope(), FieldKind.TEXT) is None

    container = scope(a=[FakeElement("gone", fail_text=True), FakeElement("still here")])
    assert await resolver.resolve_value(container, FieldKind.TEXT) == "still here"


async def test_parse_rejection_moves_to_next_candidate():
    resolver = SelectorResolver(
        {
            FieldKind.LIKES: (
                Candidate("css=a", parse=parse_count, filter_noise=False),
                Candidate("css=b", parse=parse_count, filter_noise=False),
            )
        }
    )
    container = scope(a=[FakeElement("Like")], b=[FakeElement("1,204 reactions")])

    assert await resolver.resolve_count(container, FieldKind.LIKES) == 1204


async def test_count_defaults_to_zero():
    resolver = SelectorResolver({FieldKind.SHARES: (Candidate("css=a", parse=parse_count, filter_noise=False),)})
    assert await resolver.resolve_count(scope(), FieldKind.SHARES) == 0


async def test_attribute_candidate_reads_attribute():
    resolver = SelectorResolver({FieldKind.URL: (Candidate("css=a", attribute="href", filter_noise=False),)})
    container = scope(a=[FakeElement("Like", attrs={"href": "https://www.facebook.com/groups/1/posts/2"})])

    assert await resolver.resolve_value(container, FieldKind.URL) == "https://www.facebook.com/groups/1/posts/2"


async def test_resolve_all_keeps_parsed_values_in_order():
    resolver = SelectorResolver(
        {FieldKind.IMAGES: (Candidate("css=img", attribute="src", parse=parse_content_image, filter_noise=False),)}
    )
    container = scope(
        img=[
            FakeElement(attrs={"src": "https://scontent.example/photo1.jpg"}),
            FakeElement(attrs={"src": "https://static.example/emoji/smile.png"}),
            FakeElement(attrs={"src": "https://static.xx.fbcdn.net/rsrc.php/sprite.png"}),
            FakeElement(attrs={"src": "https://scontent.example/photo2.jpg"}),
        ]
    )

    assert await resolver.resolve_all(container, FieldKind.IMAGES) == [
        "https://scontent.example/photo1.jpg",
        "https://scontent.example/photo2.jpg",
    ]


async def test_collect_texts_dedupes_across_candidates():
    resolver = SelectorResolver({FieldKind.TEXT: (Candidate("css=a"), Candidate("css=b"))})
    container = scope(
        a=[FakeElement("Selling my bike"), FakeElement("Like"), FakeElement("Barely used")],
        b=[FakeElement("Selling my bike"), FakeElement("DM me")],
    )

    assert await resolver.collect_texts(container, FieldKind.TEXT) == ["Selling my bike", "Barely used", "DM me"]


@pytest.mark.parametrize(
    "text, expected",
    [("Only $1,200 OBO", "$1,200"), ("R$ 350", "R$ 350"), ("€40", "€40"), ("free", None)],
)
def test_parse_price(text, expected):
    assert parse_price(text) == expected


def test_parse_title_rejects_long_text():
    assert parse_title("Mountain bike") == "Mountain bike"
    assert parse_title("x" * 200) is None
