from __future__ import annotations

from pathlib import Path

import pytest

from vocabbot.importer import MAX_ITEM_ID_BYTES, VocabImportError, parse_vocab_bytes, parse_vocab_csv

HEADER = "id,text,reading,meaning,level,tags\n"


def write(tmp_path: Path, body: str, header: str = HEADER) -> Path:
    path = tmp_path / "vocab.csv"
    path.write_text(header + body, encoding="utf-8")
    return path


def test_parse_rows_in_order_and_skip_duplicates(tmp_path: Path) -> None:
    path = write(
        tmp_path,
        "10,喜欢,xǐ huan,To like,1,verb\n"
        "6,困难,kùn nan,Difficult,3,adjective;hsk3\n"
        "10,喜欢,xǐ huan,Duplicate,1,\n",
    )
    items = list(parse_vocab_csv(path))
    assert [i.id for i in items] == ["10", "6"]
    assert items[0].meaning == "To like"
    assert items[1].tags == ("adjective", "hsk3")
    assert items[1].level == 3


def test_bad_header(tmp_path: Path) -> None:
    path = write(tmp_path, "1,a,b,c,1,\n", header="word,meaning\n")
    with pytest.raises(VocabImportError):
        list(parse_vocab_csv(path))


@pytest.mark.parametrize(
    "row",
    [
        "1,,r,meaning,1,\n",
        "1,text,r,,1,\n",
        "1,text,r,meaning,seven,\n",
        "1,text,r,meaning,7,\n",
    ],
)
def test_bad_rows(tmp_path: Path, row: str) -> None:
    with pytest.raises(VocabImportError):
        list(parse_vocab_csv(write(tmp_path, row)))


def test_item_id_must_fit_in_callback_data(tmp_path: Path) -> None:
    ok = "x" * MAX_ITEM_ID_BYTES
    items = parse_vocab_csv(write(tmp_path, f"{ok},a,,b,1,\n"))
    assert len(f"ans:again:{items[0].id}".encode()) == 64

    with pytest.raises(VocabImportError):
        parse_vocab_csv(write(tmp_path, f"{ok}x,a,,b,1,\n"))
    # Multi-byte ids are measured in bytes
    with pytest.raises(VocabImportError):
        parse_vocab_csv(write(tmp_path, f"{'词' * 20},a,,b,1,\n"))


def test_uploaded_bytes_with_bom() -> None:
    data = ("\ufeff" + HEADER + "1,你好,nǐ hǎo,hello,1,\r\n").encode("utf-8")
    (item,) = parse_vocab_bytes(data)
    assert item.text == "你好"


def test_uploaded_bytes_not_utf8() -> None:
    with pytest.raises(VocabImportError):
        parse_vocab_bytes((HEADER + "1,caf\xe9,,coffee,1,\n").encode("latin-1"))
