import pytest

from card_processing import RGB, EffectText, CardError
from config import CARD_WIDTH_MM, CARD_HEIGHT_MM, TEXTBOX_X_RATIO, TEXTBOX_Y_RATIO_MONSTER, TEXTBOX_Y_RATIO
from pdf_generator import FontAssetError, PdfSink, generate_sheet, load_overlay_font
from conftest import make_card_image

BG = RGB(210, 190, 160)
MONSTER = EffectText("[怪兽|效果] 龙/暗 ★8", "①：这张卡不会被战斗破坏。")
SPELL = EffectText("[魔法|速攻]", "①：对方场上的怪兽全部破坏。")
PENDULUM = EffectText("[怪兽|效果|灵摆] 魔法师/暗 ★4", "【灵摆效果】\r\n①：灵摆效果文本。\r\n【怪兽效果】\r\n①：怪兽效果文本。")

def fetch_image(card_id):
    return make_card_image(size=(65, 95))

def sheet(card_ids, sink, **kwargs):
    kwargs.setdefault("min_delay_seconds", 0)
    return generate_sheet(card_ids, kwargs.pop("fetch_image", fetch_image), sink=sink, **kwargs)

def test_two_cards_on_one_page(sink):
    result = sheet([1, 2], sink)
    images = sink.of_kind("image")
    assert [op[1:] for op in images] == [(0, 16, 19, CARD_WIDTH_MM, CARD_HEIGHT_MM), (0, 75, 19, CARD_WIDTH_MM, CARD_HEIGHT_MM)]
    assert result.errors == [] and result.page_count == 1
    assert sink.of_kind("add_page") == []

def test_ten_cards_span_two_pages(sink):
    result = sheet(list(range(1, 11)), sink, concurrency=3)
    assert result.page_count == 2
    assert len(sink.of_kind("add_page")) == 1
    assert [op[1] for op in sink.of_kind("image")] == [0] * 9 + [1]

def test_failed_image_leaves_blank_slot(sink):
    def flaky(card_id):
        if card_id == 2: raise IOError("HTTP 404")
        return make_card_image(size=(65, 95))
    result = sheet([1, 2, 3], sink, fetch_image=flaky)
    assert result.errors == [CardError(2, "HTTP 404")]
    assert len(sink.of_kind("image")) == 2
    assert sink.of_kind("fill") == [("fill", 0, 75, 19, CARD_WIDTH_MM, CARD_HEIGHT_MM, (255, 255, 255))]

def test_draw_failure_is_recorded(sink):
    def broken_draw(image, x, y, w, h):
        raise RuntimeError("bad image")
    sink.draw_image = broken_draw
    result = sheet([9], sink)
    assert result.errors == [CardError(9, "bad image")]
    assert len(sink.of_kind("fill")) == 1

def test_spacing_is_clamped(sink):
    sheet([1], sink, spacing_mm=100)
    assert sink.of_kind("image")[0][2:4] == (75 - CARD_WIDTH_MM - 11, 105 - CARD_HEIGHT_MM - 11)

def overlay_sheet(sink, effect_text, **kwargs):
    return sheet([1], sink, overlay_effects=True, fetch_card_text=lambda cid: effect_text,
                 sample_bg_color=lambda image, monster: BG, **kwargs)

def test_monster_overlay_covers_monster_box(sink):
    result = overlay_sheet(sink, MONSTER)
    assert result.errors == []
    (fill,) = sink.of_kind("fill")
    assert fill[6] == BG
    assert fill[2] == pytest.approx(16 + CARD_WIDTH_MM * TEXTBOX_X_RATIO)
    assert fill[3] == pytest.approx(19 + CARD_HEIGHT_MM * TEXTBOX_Y_RATIO_MONSTER)
    texts = sink.of_kind("text")
    assert texts and "".join(op[2] for op in texts).startswith("①：")
    assert all(fill[3] < op[4] < fill[3] + fill[5] for op in texts)

def test_spell_overlay_uses_taller_box(sink):
    overlay_sheet(sink, SPELL)
    (fill,) = sink.of_kind("fill")
    assert fill[3] == pytest.approx(19 + CARD_HEIGHT_MM * TEXTBOX_Y_RATIO)

def test_pendulum_overlay_fills_both_boxes(sink):
    overlay_sheet(sink, PENDULUM)
    fills = sink.of_kind("fill")
    assert len(fills) == 2 and all(f[6] == BG for f in fills)
    drawn = "".join(op[2] for op in sink.of_kind("text"))
    assert "灵摆效果文本" in drawn and "怪兽效果文本" in drawn
    assert "【" not in drawn

def test_text_failure_keeps_card_image(sink):
    def no_text(card_id):
        raise IOError("HTTP 500")
    result = sheet([3], sink, overlay_effects=True, fetch_card_text=no_text, sample_bg_color=lambda image, monster: BG)
    assert result.errors == [CardError(3, "HTTP 500")]
    assert len(sink.of_kind("image")) == 1
    assert sink.of_kind("fill") == [] and sink.of_kind("text") == []

def test_missing_font_file_aborts(sink, tmp_path):
    with pytest.raises(FontAssetError):
        overlay_sheet(sink, MONSTER, font_path=str(tmp_path / "missing.ttf"))
    assert sink.ops == []

def test_default_font_is_cached():
    assert load_overlay_font() is load_overlay_font()

def test_progress_reports_every_card(sink):
    calls = []
    sheet([1, 2, 3, 4], sink, on_progress=lambda done, total: calls.append((done, total)))
    assert sorted(calls) == [(1, 4), (2, 4), (3, 4), (4, 4)]

def test_real_pdf_output():
    result = sheet(list(range(10)), PdfSink())
    assert result.document.startswith(b"%PDF")
    assert result.page_count == 2

def test_real_pdf_output_with_overlay():
    result = overlay_sheet(PdfSink(), PENDULUM)
    assert result.document.startswith(b"%PDF")
    assert result.errors == []

def test_pdf_sink_measures_text():
    pdf = PdfSink()
    pdf.set_font(load_overlay_font().name, 8)
    at_8pt = pdf.get_text_width("效")
    pdf.set_font_size(4)
    assert 0 < pdf.get_text_width("效") < at_8pt

def test_summary_reports_page_count(sink, capsys):
    sheet(list(range(1, 11)), sink)
    assert "Cards: 10, Pages: 2," in capsys.readouterr().out

def test_pdf_sink_fills_and_draws_across_pages():
    pdf = PdfSink()
    pdf.fill_rect(10, 10, 20, 20, BG)
    pdf.add_page()
    pdf.set_font(load_overlay_font().name, 6)
    pdf.set_text_color(RGB(20, 20, 20))
    pdf.draw_text("①：效果", 12, 15)
    assert pdf.page_count == 2
    assert pdf.output().startswith(b"%PDF")
