"""Tests for override extraction and conflict detection."""

from mzforge.analysis import PluginSource, detect_conflicts, extract_overrides, extract_touches

ALIAS_UPDATE = """
const _Scene_Map_update = Scene_Map.prototype.update;
Scene_Map.prototype.update = function() {
    _Scene_Map_update.call(this);
};
"""

REPLACE_UPDATE = """
Scene_Map.prototype.update = function() {
    this.updateEverything();
};
"""

READ_ONLY_SETUP = "const _Game_Actor_setup = Game_Actor.prototype.setup;\n"

ASSIGN_SETUP = "Game_Actor.prototype.setup = function(actorId) {};\n"


class TestExtractTouches:
    """Tests for the override extraction heuristics."""

    def test_alias_and_assignment(self):
        touches = extract_touches(ALIAS_UPDATE)
        assert len(touches) == 1
        touch = touches[0]
        assert touch.identifier == "Scene_Map.update"
        assert touch.captured and touch.assigned
        assert not touch.static

    def test_capture_only(self):
        touch = extract_touches(READ_ONLY_SETUP)[0]
        assert touch.captured and not touch.assigned

    def test_comments_and_strings_ignored(self):
        code = (
            "// Window_Base.prototype.update = function() {};\n"
            "/* Scene_Title.prototype.start = null; */\n"
            "const hint = 'Scene_Boot.prototype.start = x';\n"
        )
        assert extract_overrides(code) == []

    def test_comparisons_are_not_assignments(self):
        code = "if (Scene_Map.prototype.update === other) {}\nconst f = Scene_Map.prototype.update => 1;"
        assert extract_overrides(code) == []

    def test_define_property(self):
        code = "Object.defineProperty(Game_Actor.prototype, 'level', { get: function() { return 1; } });"
        assert extract_overrides(code) == ["Game_Actor.level"]

    def test_static_methods(self):
        code = (
            "const _DataManager_isDatabaseLoaded = DataManager.isDatabaseLoaded;\n"
            "DataManager.isDatabaseLoaded = function() {\n"
            "    return _DataManager_isDatabaseLoaded.call(this);\n"
            "};\n"
            "ImageManager.loadFace = (name) => null;\n"
            "const width = Graphics.width;\n"
        )
        touches = {t.identifier: t for t in extract_touches(code)}
        assert set(touches) == {"DataManager.isDatabaseLoaded", "ImageManager.loadFace"}
        assert touches["DataManager.isDatabaseLoaded"].static
        assert touches["DataManager.isDatabaseLoaded"].captured

    def test_one_touch_per_method(self):
        code = REPLACE_UPDATE + REPLACE_UPDATE
        assert extract_overrides(code) == ["Scene_Map.update"]


class TestDetectConflicts:
    """Tests for grouping touches across plugins."""

    def test_alias_chain_is_warning(self):
        report = detect_conflicts([("A", ALIAS_UPDATE), ("B", ALIAS_UPDATE)])
        assert report.health == "conflicts"
        assert len(report.conflicts) == 1
        conflict = report.conflicts[0]
        assert conflict.method == "Scene_Map.update"
        assert (conflict.class_name, conflict.method_name) == ("Scene_Map", "update")
        assert conflict.severity == "warning"
        assert conflict.plugins == ["A", "B"]
        assert not conflict.destructive

    def test_overwrite_without_capture_is_destructive(self):
        report = detect_conflicts([("A", ALIAS_UPDATE), ("B", REPLACE_UPDATE)])
        assert report.conflicts[0].destructive

    def test_capture_only_is_info(self):
        report = detect_conflicts([("A", ASSIGN_SETUP), ("B", READ_ONLY_SETUP)])
        assert report.conflicts[0].severity == "info"

    def test_single_plugin_is_clean(self):
        report = detect_conflicts([("A", ALIAS_UPDATE + ASSIGN_SETUP), ("B", "console.log(1);")])
        assert report.health == "clean"
        assert report.conflicts == []
        assert report.total_overrides == 2

    def test_total_overrides_counts_all_touches(self):
        report = detect_conflicts([("A", ALIAS_UPDATE + ASSIGN_SETUP), ("B", ALIAS_UPDATE)])
        assert report.total_overrides == 3

    def test_warnings_sorted_first(self):
        report = detect_conflicts([
            ("A", ASSIGN_SETUP + REPLACE_UPDATE),
            ("B", READ_ONLY_SETUP + ALIAS_UPDATE),
        ])
        assert [c.severity for c in report.conflicts] == ["warning", "info"]
        assert report.conflicts[0].method == "Scene_Map.update"

    def test_order_independent(self):
        """Reordering plugins changes only the order of names within a conflict."""
        sources = [("A", ALIAS_UPDATE + ASSIGN_SETUP), ("B", REPLACE_UPDATE), ("C", READ_ONLY_SETUP)]
        forward = detect_conflicts(sources)
        backward = detect_conflicts(list(reversed(sources)))

        assert {(c.method, c.severity) for c in forward.conflicts} == {
            (c.method, c.severity) for c in backward.conflicts
        }
        assert forward.total_overrides == backward.total_overrides
        for conflict in forward.conflicts:
            mirrored = next(c for c in backward.conflicts if c.method == conflict.method)
            assert mirrored.plugins == list(reversed(conflict.plugins))

    def test_unreadable_source_skipped(self):
        sources = [
            PluginSource(name="A", text=ALIAS_UPDATE, filename="A.js"),
            PluginSource(name="Bad", filename="Bad.js", error="invalid utf-8"),
            PluginSource(name="C", text=ALIAS_UPDATE, filename="C.js"),
        ]
        report = detect_conflicts(sources)
        assert report.skipped == ["Bad.js"]
        assert report.conflicts[0].plugins == ["A", "C"]

    def test_report_is_advisory(self):
        assert "Heuristic" in detect_conflicts([]).advisory

    def test_static_and_prototype_reported_apart(self):
        """A static method and a prototype method of the same name are separate conflicts."""
        code = (
            "Window_Base.prototype.refresh = function() {};\n"
            "Window_Base.refresh = function() {};\n"
        )
        report = detect_conflicts([("A", code), ("B", code)])

        assert [(c.method, c.static) for c in report.conflicts] == [
            ("Window_Base.refresh", False),
            ("Window_Base.refresh", True),
        ]
