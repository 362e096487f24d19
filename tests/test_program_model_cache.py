"""
Tests for ProgramModelCache reuse-or-rebuild decisions.
"""

from workspace_sync.services.program_model_cache import ProgramModelCache


def test_first_acquire_builds_fresh_unit():
    cache = ProgramModelCache()

    unit, fresh = cache.acquire()

    assert fresh
    assert len(unit) == 0
    assert unit.configuration.groovydoc is True
    assert unit.configuration.classpath == ()


def test_second_acquire_reuses_unit():
    cache = ProgramModelCache()
    first, _ = cache.acquire()

    second, fresh = cache.acquire()

    assert second is first
    assert not fresh


def test_setting_classpath_rebuilds(tmp_path):
    jar = tmp_path / "dep.jar"
    jar.write_bytes(b"")
    cache = ProgramModelCache()
    first, _ = cache.acquire()

    cache.set_additional_classpath([str(jar)])
    second, fresh = cache.acquire()

    assert fresh
    assert second is not first
    assert second.configuration.classpath == (str(jar),)
    assert second.context.context_id != first.context.context_id


def test_archive_appearing_in_glob_directory_rebuilds(tmp_path):
    lib = tmp_path / "lib"
    lib.mkdir()
    cache = ProgramModelCache([str(lib) + "/*"])
    first, _ = cache.acquire()
    assert first.configuration.classpath == ()

    (lib / "new.jar").write_bytes(b"")
    second, fresh = cache.acquire()

    assert fresh
    assert second.configuration.classpath == (str(lib / "new.jar"),)


def test_unchanged_classpath_keeps_context(tmp_path):
    jar = tmp_path / "dep.jar"
    jar.write_bytes(b"")
    cache = ProgramModelCache([str(jar)])
    first, _ = cache.acquire()

    second, fresh = cache.acquire()

    assert not fresh
    assert second.context is first.context


def test_invalidate_discards_everything():
    cache = ProgramModelCache()
    first, _ = cache.acquire()

    cache.invalidate()

    assert cache.compilation_unit is None
    second, fresh = cache.acquire()
    assert fresh
    assert second is not first


def test_missing_classpath_entries_do_not_fail(tmp_path):
    cache = ProgramModelCache([str(tmp_path / "missing.jar")])

    unit, fresh = cache.acquire()

    assert fresh
    assert unit.configuration.classpath == ()
    assert cache.additional_classpath == [str(tmp_path / "missing.jar")]
