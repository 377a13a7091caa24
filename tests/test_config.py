import pytest

from trackball.config import ConfigError, ConfigParser

SAMPLE = (
    "## header line\n"
    "src_fn           : video.avi\n"
    "vfov  :  45.5\n"
    "fisheye : y\n"
    "roi_circ : { 10, 20, 30, 40, 50, 60 }\n"
    "roi_ignr : { { 1, 2, 3, 4 }, { 5, 6, 7, 8 } }\n"
    "# a saved comment\n"
    "% another comment\n"
    "x\n"
    "no delimiter here\n"
    "empty_val :\n"
)

KEYS = {"src_fn", "vfov", "fisheye", "roi_circ", "roi_ignr", "empty_val"}


@pytest.fixture
def sample_path(tmp_path):
    path = tmp_path / "config.txt"
    path.write_bytes(SAMPLE.encode("utf-8"))
    return path


@pytest.fixture
def cfg(sample_path):
    return ConfigParser(sample_path)


def test_read_returns_pair_count(sample_path):
    parser = ConfigParser()
    assert parser.read(sample_path) == len(KEYS)
    assert all(key in parser for key in KEYS)
    assert len(parser) == len(KEYS)


def test_skipped_lines_are_not_keys(cfg):
    assert "## header line" not in cfg
    assert "no delimiter here" not in cfg
    assert "x" not in cfg


def test_values_are_trimmed(cfg):
    assert cfg.get_str("src_fn") == "video.avi"
    assert cfg.get_str("vfov") == "45.5"
    assert cfg.get_float("vfov") == pytest.approx(45.5)
    assert cfg.get_str("empty_val") == ""


def test_missing_key(cfg):
    assert cfg.get_str("nope") is None
    assert cfg.get_int("nope") is None
    assert cfg.get_int_list("nope") is None
    assert cfg.get("nope") == ""
    assert cfg.get("nope", "fallback") == "fallback"


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        ConfigParser(tmp_path / "absent.txt")


def test_crlf_is_removed(tmp_path):
    path = tmp_path / "crlf.txt"
    path.write_bytes(b"a_key : value\r\n")
    parser = ConfigParser(path)
    assert parser.get_str("a_key") == "value"


def test_int_parsing():
    parser = ConfigParser()
    parser.add("n", "12abc")
    parser.add("bad", "abc")
    parser.add("big", "99999999999")
    assert parser.get_int("n") == 12
    with pytest.raises(ConfigError):
        parser.get_int("bad")
    with pytest.raises(ConfigError):
        parser.get_int("big")


def test_float_parsing_error():
    parser = ConfigParser()
    parser.add("f", "not a number")
    with pytest.raises(ConfigError):
        parser.get_float("f")


@pytest.mark.parametrize("text,expected", [("Y", True), ("y", True), ("1", True), ("N", False), ("n", False), ("0", False)])
def test_bool_values(text, expected):
    parser = ConfigParser()
    parser.add("flag", text)
    assert parser.get_bool("flag") is expected


def test_bool_invalid_raises():
    parser = ConfigParser()
    parser.add("flag", "yes")
    with pytest.raises(ConfigError):
        parser.get_bool("flag")


def test_int_list(cfg):
    assert cfg.get_int_list("roi_circ") == [10, 20, 30, 40, 50, 60]
    assert cfg.get_float_list("roi_circ") == [10.0, 20.0, 30.0, 40.0, 50.0, 60.0]


def test_int_lists(cfg):
    assert cfg.get_int_lists("roi_ignr") == [[1, 2, 3, 4], [5, 6, 7, 8]]


def test_compact_and_unbraced_lists():
    parser = ConfigParser()
    parser.add("compact", "{1, 2}")
    parser.add("plain", "1 2 3")
    assert parser.get_int_list("compact") == [1, 2]
    assert parser.get_int_list("plain") == []


def test_bad_list_element_raises():
    parser = ConfigParser()
    parser.add("pts", "{ 1, x, 3 }")
    parser.add("polys", "{ { 1, x } }")
    with pytest.raises(ConfigError):
        parser.get_int_list("pts")
    with pytest.raises(ConfigError):
        parser.get_int_lists("polys")


def test_add_write_read_round_trip(tmp_path):
    parser = ConfigParser()
    parser.add("roi_c", [0.25, -0.5, 0.75])
    parser.add("roi_circ", [3, 4, 5, 6])
    parser.add("roi_ignr", [[1, 2, 3], [4, 5, 6]])
    parser.add("roi_r", 0.125)
    parser.add("fisheye", True)
    parser.add("c2a_src", "c2a_cnrs_xy")
    path = tmp_path / "out.txt"
    parser.write(path)

    again = ConfigParser(path)
    assert again.get_float_list("roi_c") == [0.25, -0.5, 0.75]
    assert again.get_int_list("roi_circ") == [3, 4, 5, 6]
    assert again.get_int_lists("roi_ignr") == [[1, 2, 3], [4, 5, 6]]
    assert again.get_float("roi_r") == 0.125
    assert again.get_bool("fisheye") is True
    assert again.get_str("c2a_src") == "c2a_cnrs_xy"


def test_empty_lists_round_trip(tmp_path):
    parser = ConfigParser()
    parser.add("pts", [])
    parser.add("polys", [])
    path = tmp_path / "out.txt"
    parser.write(path)
    again = ConfigParser(path)
    assert again.get_int_list("pts") == []
    assert again.get_int_lists("polys") == []


def test_write_returns_byte_count(cfg, tmp_path):
    path = tmp_path / "out.txt"
    nbytes = cfg.write(path)
    assert nbytes == path.stat().st_size


def test_write_format_sorted_and_comments(cfg, tmp_path):
    cfg.add("roi_r", 5)
    path = tmp_path / "out.txt"
    cfg.write(path)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("##")
    assert "roi_r" + " " * 11 + " : 5" in lines
    pair_keys = [line.split(" : ")[0].strip() for line in lines[1:] if " : " in line]
    assert pair_keys == sorted(pair_keys)
    blank = lines.index("")
    assert lines[blank + 1 :] == ["# a saved comment", "% another comment"]


def test_write_defaults_to_read_path(cfg, sample_path):
    cfg.add("extra", "value")
    cfg.write()
    assert ConfigParser(sample_path).get_str("extra") == "value"


def test_write_without_path_raises():
    with pytest.raises(ConfigError):
        ConfigParser().write()


def test_dump_lists_pairs(cfg):
    text = cfg.dump()
    assert "\tsrc_fn\t: video.avi\n" in text
    assert text.count("\n") == len(cfg)