import pytest

from errors import InvalidInputError
from media.mediatype import media_subtype, parse_media_type


def test_parameters_are_ignored():
    assert parse_media_type("video/MP4; codecs=avc1") == "video/mp4"


@pytest.mark.parametrize("value", [None, "", "  ", "video", "video/mp4/extra", "vid eo/mp4"])
def test_rejects_empty_or_malformed(value):
    with pytest.raises(InvalidInputError):
        parse_media_type(value)


def test_media_subtype():
    assert media_subtype("image/png") == "png"
