import pytest
from PIL import Image

from cli import main


def test_prints_numbered_board(capsys):
    assert main(["-s", "5"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Elapsed time: ")
    assert "(divide_and_conquer)" in out
    assert "| 25 " in out


def test_quiet_prints_only_timing(capsys):
    assert main(["-s", "6x6", "-q"]) == 0
    out = capsys.readouterr().out.strip().splitlines()
    assert len(out) == 1


def test_no_tour_exit_code(capsys):
    assert main(["-s", "3x3"]) == 1
    assert "No knight's tour possible" in capsys.readouterr().out


def test_starting_pos_switches_to_warnsdorff(capsys):
    assert main(["-s", "5", "-p", "C3"]) == 0
    assert "(warnsdorff)" in capsys.readouterr().out


def test_board_file_and_svg_output(tmp_path, capsys):
    layout = tmp_path / "board.txt"
    layout.write_text("#####\n" * 5 + "     \n", encoding="utf-8")
    target = tmp_path / "tour.svg"
    assert main(["-f", str(layout), "-o", str(target)]) == 0
    assert target.read_text(encoding="utf-8").startswith("<svg")
    assert "Unvisited" not in capsys.readouterr().err


def test_text_output_to_file(tmp_path):
    target = tmp_path / "tour.out"
    assert main(["-s", "5", "-o", str(target), "-O", "text"]) == 0
    assert target.read_text(encoding="utf-8").startswith("+--")


@pytest.mark.parametrize(
    "argv",
    [["-s", "0x5x"], ["-p", "12"], ["-q", "-o", "x.txt"], ["-e", "fast"]],
)
def test_bad_arguments_exit(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 2


def test_bad_corner_radius(capsys):
    assert main(["-c", "1 2"]) == 2
    assert "Invalid number of corners" in capsys.readouterr().err


def _layout_image(path, rows):
    img = Image.new("RGBA", (len(rows[0]), len(rows)))
    for y, row in enumerate(rows):
        for x, ch in enumerate(row):
            img.putpixel((x, y), (0, 0, 0, 255) if ch == "#" else (255, 255, 255, 255))
    img.save(path)


def test_image_board_file(tmp_path, capsys):
    layout = tmp_path / "board.png"
    _layout_image(layout, ["#####"] * 5 + ["     "])
    assert main(["-f", str(layout)]) == 0
    captured = capsys.readouterr()
    assert "(warnsdorff)" in captured.out
    assert "| 25 " in captured.out
    assert "Unvisited" not in captured.err


def test_image_board_file_inverted(tmp_path, capsys):
    layout = tmp_path / "board.png"
    _layout_image(layout, ["#####"] * 5 + ["     "])
    assert main(["-f", str(layout), "-F", "image", "-i", "black-white", "-I"]) == 0
    assert "| 25 " in capsys.readouterr().out


def test_board_file_format_switch(tmp_path, capsys):
    layout = tmp_path / "board.layout"
    layout.write_text("#####\n" * 5, encoding="utf-8")
    assert main(["-f", str(layout), "-q"]) == 2
    assert "Unknown file type" in capsys.readouterr().err
    assert main(["-f", str(layout), "-F", "text", "-q"]) == 0


@pytest.mark.parametrize("argv", [["-F", "image"], ["-s", "5", "-t", "300"]])
def test_bad_image_arguments_exit(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 2
