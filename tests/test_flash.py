import os

import pytest

from rtisan.flash import FLASH_BASE, FLASH_PAGE_SIZE, FLASH_SIZE, FileFlash


@pytest.fixture
def flash(tmp_path):
    with FileFlash(tmp_path / "flash.bin") as f:
        yield f


def test_file_created_at_full_size(flash, tmp_path):
    assert flash.read(0, 1) == [0]
    assert os.path.getsize(tmp_path / "flash.bin") == FLASH_SIZE


def test_fresh_flash_reads_zero(flash):
    assert flash.read(0, 4) == [0, 0, 0, 0]


def test_program_read_round_trip(flash):
    words = [0x1234, 0xABCD, 0x0000, 0xFFFF]
    flash.program(0x100, words)
    assert flash.read(0x100, len(words)) == words


def test_base_address_is_mapped(flash):
    flash.program(FLASH_BASE + 0x200, [0x5A5A])
    assert flash.read(0x200, 1) == [0x5A5A]


def test_erase_page_sets_ones(flash):
    flash.program(FLASH_PAGE_SIZE, [1, 2, 3])
    flash.erase_page(FLASH_PAGE_SIZE)
    assert flash.read(FLASH_PAGE_SIZE, FLASH_PAGE_SIZE // 2) == [0xFFFF] * (FLASH_PAGE_SIZE // 2)
    assert flash.read(0, 1) == [0]


def test_contents_persist(tmp_path):
    path = tmp_path / "persist.bin"
    with FileFlash(path) as first:
        first.program(0x40, [0x0102, 0x0304])
    with FileFlash(path) as second:
        assert second.read(0x40, 2) == [0x0102, 0x0304]


def test_out_of_range_address(flash):
    with pytest.raises(ValueError):
        flash.read(FLASH_SIZE, 1)


def test_access_past_end(flash):
    with pytest.raises(ValueError):
        flash.program(FLASH_SIZE - 2, [1, 2])


def test_word_out_of_range(flash):
    with pytest.raises(ValueError):
        flash.program(0, [0x10000])