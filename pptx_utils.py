import re
from copy import deepcopy

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.dml import MSO_COLOR_TYPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.opc.constants import RELATIONSHIP_TYPE as RT
from pptx.util import Emu, Pt

TOKEN_VERSE_REF = "{{VERSE REF}}"
TOKEN_VERSE_TXT = "{{VERSE TXT}}"

# ProPresenter canvas: 1280x720 design units, 1180 wide text box offset 50.
CANVAS_W, CANVAS_H = 1280, 720
TEXT_BOX_X, TEXT_BOX_W = 50, 1180
EMU_PER_UNIT = 9525  # one design unit = one 96-dpi pixel

VERSE_FONT = "Verdana"
LABEL_FONT_SIZE = 18

# KJV text marks translator-supplied words as [bracketed]; render them italic.
_BRACKET_ITALIC_RE = re.compile(r"\[(.+?)\]")


def load_template(path):
    return Presentation(str(path))


def new_widescreen_presentation():
    prs = Presentation()
    prs.slide_width = Emu(CANVAS_W * EMU_PER_UNIT)
    prs.slide_height = Emu(CANVAS_H * EMU_PER_UNIT)
    return prs


def _blank_layout(prs):
    for layout in prs.slide_layouts:
        if layout.name == "Blank":
            return layout
    return prs.slide_layouts[len(prs.slide_layouts) - 1]


def _add_runs(paragraph, line: str, font_name, font_size, bold, italic, color_rgb):
    """Add `line` as runs, turning [bracketed] words into italic runs without brackets."""
    pieces = []
    pos = 0
    for m in _BRACKET_ITALIC_RE.finditer(line):
        if m.start() > pos:
            pieces.append((line[pos:m.start()], italic))
        pieces.append((m.group(1), True))
        pos = m.end()
    if pos < len(line):
        pieces.append((line[pos:], italic))

    for text, is_italic in pieces:
        r = paragraph.add_run()
        r.text = text
        r.font.name = font_name
        r.font.size = font_size
        r.font.bold = bold
        r.font.italic = is_italic
        if color_rgb is not None:
            r.font.color.rgb = color_rgb


# -------------------------
# Generated slides (no template)
# -------------------------

def add_plain_scripture_slide(prs, label: str, content: str, font_size_pt: int):
    """White bold Verdana on black, verses centred in the 1180-wide text box."""
    slide = prs.slides.add_slide(_blank_layout(prs))
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = RGBColor(0, 0, 0)

    white = RGBColor(0xFF, 0xFF, 0xFF)
    box = slide.shapes.add_textbox(
        Emu(TEXT_BOX_X * EMU_PER_UNIT), 0,
        Emu(TEXT_BOX_W * EMU_PER_UNIT), Emu((CANVAS_H - 60) * EMU_PER_UNIT),
    )
    tf = box.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.MIDDLE

    for i, line in enumerate(content.split("\n")):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        p.alignment = PP_ALIGN.CENTER
        _add_runs(p, line, VERSE_FONT, Pt(font_size_pt), True, False, white)

    ref_box = slide.shapes.add_textbox(
        Emu(TEXT_BOX_X * EMU_PER_UNIT), Emu((CANVAS_H - 60) * EMU_PER_UNIT),
        Emu(TEXT_BOX_W * EMU_PER_UNIT), Emu(50 * EMU_PER_UNIT),
    )
    p = ref_box.text_frame.paragraphs[0]
    p.alignment = PP_ALIGN.CENTER
    _add_runs(p, label, VERSE_FONT, Pt(LABEL_FONT_SIZE), False, False, white)
    return slide


SUBHEADING_FONT_SIZE = 28


def add_plain_heading_slide(prs, heading: str, font_size_pt: int, subheading: str | None = None):
    """Title or closing slide: one centred heading, optional smaller line below."""
    slide = prs.slides.add_slide(_blank_layout(prs))
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = RGBColor(0, 0, 0)

    white = RGBColor(0xFF, 0xFF, 0xFF)
    box = slide.shapes.add_textbox(
        Emu(TEXT_BOX_X * EMU_PER_UNIT), 0,
        Emu(TEXT_BOX_W * EMU_PER_UNIT), Emu(CANVAS_H * EMU_PER_UNIT),
    )
    tf = box.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.MIDDLE

    p = tf.paragraphs[0]
    p.alignment = PP_ALIGN.CENTER
    _add_runs(p, heading, VERSE_FONT, Pt(font_size_pt), True, False, white)
    if subheading:
        p = tf.add_paragraph()
        p.alignment = PP_ALIGN.CENTER
        _add_runs(p, subheading, VERSE_FONT, Pt(SUBHEADING_FONT_SIZE), False, False, white)
    return slide


# -------------------------
# Token-based approach (Keynote/PowerPoint templates)
# Uses a slide that literally contains {{VERSE REF}} and {{VERSE TXT}} text boxes
# -------------------------

_R_NS = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"


def _copy_relationships(src_slide, dst_slide) -> dict:
    """Copy the internal relationships (images, media); returns {old rId: new rId}."""
    dst_part = dst_slide.part
    rid_map = {}
    for r_id, rel in src_slide.part.rels.items():
        if rel.is_external or rel.reltype == RT.SLIDE_LAYOUT:
            continue
        rid_map[r_id] = dst_part.rels.get_or_add(rel.reltype, rel.target_part)
    return rid_map


def _remap_rids(element, rid_map: dict) -> None:
    for node in element.iter():
        for attr, value in node.attrib.items():
            if attr.startswith(_R_NS) and value in rid_map:
                node.set(attr, rid_map[value])


def duplicate_slide(prs, slide_index: int):
    """Copy a template slide (shapes + background) to the end of the deck."""
    src = prs.slides[slide_index]
    dst = prs.slides.add_slide(src.slide_layout)

    for shape in list(dst.shapes):
        el = shape._element
        el.getparent().remove(el)

    rid_map = _copy_relationships(src, dst)

    src_bg = src._element.cSld.bg
    if src_bg is not None:
        dst_csld = dst._element.cSld
        if dst_csld.bg is not None:
            dst_csld.remove(dst_csld.bg)
        new_bg = deepcopy(src_bg)
        _remap_rids(new_bg, rid_map)
        dst_csld.insert(0, new_bg)

    for shape in src.shapes:
        new_el = deepcopy(shape._element)
        _remap_rids(new_el, rid_map)
        dst.shapes._spTree.insert_element_before(new_el, "p:extLst")

    return dst


def _replace_token_text(slide, token: str, new_text: str, font_size_pt=None) -> bool:
    """
    Replace the token's text frame, keeping the token paragraph's formatting.
    font_size_pt overrides the template size (the CCC size chosen per slide).
    """
    for shape in slide.shapes:
        if not shape.has_text_frame:
            continue

        tf = shape.text_frame
        if token not in tf.text:
            continue

        p0 = tf.paragraphs[0]
        alignment = p0.alignment
        line_spacing = p0.line_spacing
        space_after = p0.space_after

        # Keynote exports often keep the real formatting on the first run.
        src_font = p0.runs[0].font if p0.runs else p0.font
        font_name = src_font.name
        font_size = Pt(font_size_pt) if font_size_pt else src_font.size
        font_color = None
        if src_font.color is not None and src_font.color.type == MSO_COLOR_TYPE.RGB:
            font_color = src_font.color.rgb

        tf.clear()
        for i, line in enumerate(new_text.split("\n")):
            p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
            p.alignment = alignment
            p.line_spacing = line_spacing
            p.space_after = space_after
            _add_runs(p, line, font_name, font_size, src_font.bold, src_font.italic, font_color)

        return True

    return False


def _slide_text_contains(slide, token: str) -> bool:
    for shape in slide.shapes:
        if getattr(shape, "has_text_frame", False) and token in shape.text_frame.text:
            return True
    return False


def find_template_slide_index(prs, required_tokens: list[str]) -> int:
    """
    Return the index of the first slide that contains ALL required tokens.
    """
    for i, slide in enumerate(prs.slides):
        if all(_slide_text_contains(slide, tok) for tok in required_tokens):
            return i
    raise RuntimeError(f"Template slide not found containing tokens: {required_tokens}")


def add_scripture_slide_from_template(prs, template_slide_index: int, label: str, content: str,
                                      font_size_pt: int):
    slide = duplicate_slide(prs, template_slide_index)

    if not _replace_token_text(slide, TOKEN_VERSE_REF, label):
        raise RuntimeError("Scripture template slide missing {{VERSE REF}} token.")
    if not _replace_token_text(slide, TOKEN_VERSE_TXT, content, font_size_pt=font_size_pt):
        raise RuntimeError("Scripture template slide missing {{VERSE TXT}} token.")

    return slide


def remove_template_placeholder_slides(prs) -> int:
    """
    Remove any slides that still contain template tokens like {{VERSE TXT}}.
    Returns number removed.
    """
    slide_id_list = prs.slides._sldIdLst  # pylint: disable=protected-access
    entries = list(slide_id_list)
    removed = 0
    for i, slide in reversed(list(enumerate(prs.slides))):
        if not _slide_text_contains(slide, "{{"):
            continue
        sld_id = entries[i]
        r_id = sld_id.rId
        slide_id_list.remove(sld_id)
        prs.part.drop_rel(r_id)
        removed += 1
    return removed
