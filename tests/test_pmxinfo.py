import io

import pytest

import pmxinfo
import pmxread
from pmxbuilder import PmxWriter, minimal_model


def named_model() -> bytes:
    w = PmxWriter()
    w.writeHeader()
    w.writeInfo("Miku", "Miku_en", "comment", "")
    w.writeUnsignedInt(0)  # vertices
    w.writeUnsignedInt(6)  # faces
    for v in (0, 1, 2, 0, 2, 3):
        w.writeUnsignedInt(v)
    w.writeUnsignedInt(1)  # textures
    w.writeStr("body.png")
    w.writeUnsignedInt(2)  # materials
    w.writeMaterial(name="body")
    w.writeMaterial(name="hair")
    w.writeEmptySections("bones")
    return w.getvalue()


def test_summarize_counts():
    model = pmxread.read(io.BytesIO(named_model()))
    lines = pmxinfo.summarize(model)
    assert lines[0] == "name: Miku"
    assert lines[1] == "name_e: Miku_en"
    assert "face: 2" in lines
    assert "texture: 1" in lines
    assert "material: 2" in lines
    assert "bone: 0" in lines
    assert "joint: 0" in lines


def test_summarize_lists_sections():
    model = pmxread.read(io.BytesIO(named_model()))
    lines = pmxinfo.summarize(model, lists=["material", "TEXTURE"])
    i = lines.index("[MATERIAL]")
    assert lines[i + 1:i + 3] == ["  0: body (body_e)", "  1: hair (hair_e)"]
    i = lines.index("[TEXTURE]")
    assert lines[i + 1] == "  0: body.png"


def test_summarize_unknown_section():
    model = pmxread.read(io.BytesIO(minimal_model()))
    with pytest.raises(ValueError):
        pmxinfo.summarize(model, lists=["VERTEX"])


def test_inspect_pmx_file(tmp_path):
    path = tmp_path / "model.pmx"
    path.write_bytes(named_model())
    ret, msg = pmxinfo.inspect_pmx_file(str(path), lists=["BONE"])
    assert ret
    assert "name: Miku" in msg
    assert "[BONE]" in msg


def test_inspect_invalid_file(tmp_path):
    path = tmp_path / "broken.pmx"
    path.write_bytes(b'PMD ' + minimal_model()[4:])
    ret, msg = pmxinfo.inspect_pmx_file(str(path))
    assert not ret
    assert "Failed to load" in msg


def test_inspect_truncated_file(tmp_path):
    path = tmp_path / "short.pmx"
    path.write_bytes(minimal_model()[:-2])
    ret, _ = pmxinfo.inspect_pmx_file(str(path))
    assert not ret


def test_inspect_missing_file(tmp_path):
    ret, _ = pmxinfo.inspect_pmx_file(str(tmp_path / "missing.pmx"))
    assert not ret


def test_inspect_rejects_unknown_sections(tmp_path):
    path = tmp_path / "model.pmx"
    path.write_bytes(minimal_model())
    ret, msg = pmxinfo.inspect_pmx_file(str(path), lists=["FOO"])
    assert not ret
    assert "FOO" in msg


def test_inspect_requires_path():
    ret, _ = pmxinfo.inspect_pmx_file("")
    assert not ret


def test_inspect_accepts_generator_lists(tmp_path):
    path = tmp_path / "model.pmx"
    path.write_bytes(named_model())
    ret, msg = pmxinfo.inspect_pmx_file(str(path), lists=(s for s in ["material", "texture"]))
    assert ret
    assert "[MATERIAL]" in msg.splitlines()
    assert "  1: hair (hair_e)" in msg.splitlines()
    assert "[TEXTURE]" in msg.splitlines()
