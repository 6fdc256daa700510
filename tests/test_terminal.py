from depth_heatmap.render.canvas import RecordingCanvas
from depth_heatmap.render.heatmap import HeatmapRenderer
from depth_heatmap.ui.terminal import CELL_H, CELL_W, TerminalCanvas


def test_size_in_logical_pixels():
    canvas = TerminalCanvas(10, 4)
    assert (canvas.width, canvas.height) == (10 * CELL_W, 4 * CELL_H)
    canvas.resize(20, 5)
    assert (canvas.cols, canvas.rows) == (20, 5)
    assert canvas.width == 160


def test_rect_covers_character_centers():
    canvas = TerminalCanvas(10, 4)
    canvas.fill_rect(8, 16, 16, 16, "#ff0000")
    painted = [(r, c) for r in range(4) for c in range(10) if canvas.bg[r][c] == "#ff0000"]
    assert painted == [(1, 1), (1, 2)]


def test_centered_text():
    canvas = TerminalCanvas(10, 4)
    canvas.text(40, 40, "ab", "#ffffff", align="center")
    assert canvas.to_rich().plain.splitlines()[2][4:6] == "ab"


def test_small_dot_still_visible():
    canvas = TerminalCanvas(10, 4)
    canvas.fill_circle(12, 8, 1, "#00d7ff")
    assert canvas.chars[0][1] == "●"
    canvas.fill_circle(10, 40, 1, "#00d7ff")
    assert canvas.chars[2][1] == "•"


def test_frame_clears_glyphs_and_notifies():
    canvas = TerminalCanvas(10, 4)
    frames = []
    canvas.on_frame = frames.append
    canvas.text(0, 0, "x", "#ffffff")
    with canvas.frame():
        pass
    assert canvas.chars[0][0] == " "
    assert frames == [canvas]


def test_heatmap_drawn_on_grid(config, store, tick, ingestor, snapshot_factory):
    ingestor.ingest(snapshot_factory())
    renderer = HeatmapRenderer(store, config, tick)
    terminal = TerminalCanvas(100, 30)
    recording = RecordingCanvas(terminal.width, terminal.height)
    renderer.render(terminal)
    renderer.render(recording)
    # Price labels land on the grid next to the plot
    text = terminal.to_rich().plain
    for label in ("99.7", "100.4"):
        assert label in text
    assert len(recording.of("rect")) == 7
