import os
import logging
import tempfile
import unittest
from pathlib import Path

os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")

import applog
import medstate as s
import widgets


def _seeded():
    return s.MedicineScreenController()


class TestStoreOps(unittest.TestCase):
    def test_add_appends_with_size_plus_one_id(self):
        store = s.add_medicine(s.SAMPLE_MEDICINES, "Vitamin C", "1g", "Morning")
        self.assertEqual(len(store), 4)
        self.assertEqual(store[-1], s.Medicine(4, "Vitamin C", "1g", "Morning"))
        self.assertEqual(store[:3], s.SAMPLE_MEDICINES)

    def test_add_accepts_empty_fields(self):
        store = s.add_medicine((), "", "", "")
        self.assertEqual(store, (s.Medicine(1, "", "", ""),))

    def test_update_replaces_only_matching_entry(self):
        store = s.update_medicine(s.SAMPLE_MEDICINES, 2, "Aspirin C", "100mg", "Night")
        self.assertEqual(store[1], s.Medicine(2, "Aspirin C", "100mg", "Night"))
        self.assertEqual(store[0], s.SAMPLE_MEDICINES[0])
        self.assertEqual(store[2], s.SAMPLE_MEDICINES[2])

    def test_update_missing_id_is_noop(self):
        store = s.update_medicine(s.SAMPLE_MEDICINES, 99, "x", "y", "z")
        self.assertEqual(store, s.SAMPLE_MEDICINES)

    def test_delete_removes_every_match_and_keeps_order(self):
        store = s.SAMPLE_MEDICINES + (s.Medicine(2, "Dup", "1", "Noon"), s.Medicine(5, "Zinc", "10mg", "Evening"))
        out = s.delete_medicine(store, 2)
        self.assertEqual([m.id for m in out], [1, 3, 5])
        self.assertEqual([m.name for m in out], ["Paracetamol", "Ibuprofen", "Zinc"])

    def test_delete_missing_id_is_noop(self):
        self.assertEqual(s.delete_medicine(s.SAMPLE_MEDICINES, 42), s.SAMPLE_MEDICINES)


class TestReducer(unittest.TestCase):
    def test_initial_state_is_idle_with_seed(self):
        st = s.ScreenState()
        self.assertEqual(st.form.mode, s.FormMode.IDLE)
        self.assertEqual(st.medicines, s.SAMPLE_MEDICINES)

    def test_start_add_clears_drafts(self):
        st = s.reduce(s.ScreenState(), s.StartAdd())
        self.assertEqual(st.form, s.FormState(mode=s.FormMode.ADDING))
        self.assertEqual(st.form.submit_label, "Add")

    def test_start_edit_seeds_drafts(self):
        target = s.SAMPLE_MEDICINES[0]
        st = s.reduce(s.ScreenState(), s.StartEdit(target))
        self.assertEqual(st.form.mode, s.FormMode.EDITING)
        self.assertEqual((st.form.name, st.form.dosage, st.form.schedule), ("Paracetamol", "500mg", "Morning"))
        self.assertIs(st.form.edit_target, target)
        self.assertEqual(st.form.submit_label, "Update")

    def test_reduce_does_not_mutate_input(self):
        st0 = s.ScreenState()
        s.reduce(st0, s.StartAdd())
        self.assertEqual(st0.form.mode, s.FormMode.IDLE)

    def test_cancel_from_adding_and_editing(self):
        for start in (s.StartAdd(), s.StartEdit(s.SAMPLE_MEDICINES[1])):
            st = s.reduce(s.ScreenState(), start)
            st = s.reduce(st, s.ChangeName("garbage"))
            st = s.reduce(st, s.ChangeDosage("???"))
            st = s.reduce(st, s.Cancel())
            self.assertEqual(st.form, s.IDLE_FORM)
            self.assertEqual(st.medicines, s.SAMPLE_MEDICINES)

    def test_submit_add_with_empty_drafts(self):
        st = s.reduce(s.ScreenState(), s.StartAdd())
        st = s.reduce(st, s.Submit())
        self.assertEqual(st.medicines[-1], s.Medicine(4, "", "", ""))
        self.assertEqual(st.form, s.IDLE_FORM)

    def test_invalid_transitions_raise(self):
        idle = s.ScreenState()
        for action in (s.Submit(), s.Cancel(), s.ChangeName("x"), s.ChangeDosage("x"), s.ChangeSchedule("x")):
            with self.assertRaises(s.InvalidTransition) as cm:
                s.reduce(idle, action)
            self.assertEqual(cm.exception.mode, s.FormMode.IDLE)
        adding = s.reduce(idle, s.StartAdd())
        with self.assertRaises(s.InvalidTransition):
            s.reduce(adding, s.StartAdd())
        self.assertTrue(issubclass(s.InvalidTransition, s.MedminderError))

    def test_unknown_action_raises_type_error(self):
        with self.assertRaises(TypeError):
            s.reduce(s.ScreenState(), object())

    def test_edit_from_adding_switches_to_editing(self):
        st = s.reduce(s.ScreenState(), s.StartAdd())
        st = s.reduce(st, s.ChangeName("half typed"))
        st = s.reduce(st, s.StartEdit(s.SAMPLE_MEDICINES[2]))
        self.assertEqual(st.form.mode, s.FormMode.EDITING)
        self.assertEqual(st.form.name, "Ibuprofen")

    def test_delete_while_editing_keeps_form(self):
        st = s.reduce(s.ScreenState(), s.StartEdit(s.SAMPLE_MEDICINES[0]))
        st = s.reduce(st, s.Delete(1))
        self.assertEqual(st.form.mode, s.FormMode.EDITING)
        st = s.reduce(st, s.Submit())
        self.assertEqual([m.id for m in st.medicines], [2, 3])


class TestController(unittest.TestCase):
    def test_delete_then_add_reuses_id(self):
        c = _seeded()
        c.delete(2)
        self.assertEqual([m.id for m in c.medicines], [1, 3])
        c.start_add()
        c.change_name("Vitamin D")
        c.change_dosage("1000IU")
        c.change_schedule("Night")
        c.submit()
        self.assertEqual([m.id for m in c.medicines], [1, 3, 3])
        self.assertEqual(c.medicines[-1], s.Medicine(3, "Vitamin D", "1000IU", "Night"))

    def test_duplicate_id_logs_warning(self):
        c = _seeded()
        c.delete(2)
        c.start_add()
        with self.assertLogs("medminder", level="WARNING") as cm:
            c.submit()
        self.assertTrue(any("duplicates" in line for line in cm.output))

    def test_edit_dosage_scenario(self):
        c = _seeded()
        row = next(m for m in c.medicines if m.id == 3)
        c.start_edit(row)
        c.change_dosage("250mg")
        c.submit()
        self.assertEqual(c.medicines[2], s.Medicine(3, "Ibuprofen", "250mg", "Evening"))
        self.assertEqual(c.medicines[:2], s.SAMPLE_MEDICINES[:2])
        self.assertEqual(c.form.mode, s.FormMode.IDLE)

    def test_rows_projection(self):
        c = _seeded()
        rows = c.rows
        self.assertEqual([r.text for r in rows], ["Paracetamol", "Aspirin", "Ibuprofen"])
        self.assertEqual(rows[0].secondary_text, "Dosage: 500mg, Schedule: Morning")

    def test_listeners_notified_and_unsubscribed(self):
        c = _seeded()
        seen = []
        unsubscribe = c.subscribe(seen.append)
        c.start_add()
        c.cancel()
        unsubscribe()
        c.delete(1)
        self.assertEqual([st.form.mode for st in seen], [s.FormMode.ADDING, s.FormMode.IDLE])

    def test_failed_dispatch_leaves_state(self):
        c = _seeded()
        before = c.state
        with self.assertRaises(s.InvalidTransition):
            c.submit()
        self.assertIs(c.state, before)

    def test_mutations_are_logged(self):
        c = _seeded()
        with self.assertLogs("medminder", level="INFO") as cm:
            c.delete(1)
        self.assertIn("deleted medicine id=1", cm.output[0])


class TestLogging(unittest.TestCase):
    def test_ring_trims(self):
        ring = applog.RingLog(max_lines=3)
        for i in range(5):
            ring.add(f"line {i}")
        ring.add("")
        self.assertEqual(ring.lines(), ["line 2", "line 3", "line 4"])
        ring.clear()
        self.assertEqual(ring.text(), "")

    def test_handler_writes_ring_and_file(self):
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "logs" / "app.log"
            ring = applog.RingLog()
            handler = applog.FileAndRingHandler(path, ring)
            log = logging.getLogger("medminder.test_handler")
            log.propagate = False
            log.addHandler(handler)
            try:
                log.warning("hello ring")
            finally:
                log.removeHandler(handler)
            self.assertIn("WARNING hello ring", ring.text())
            self.assertIn("hello ring", path.read_text(encoding="utf-8"))

            applog.clear_log(path, ring)
            self.assertFalse(path.exists())
            self.assertEqual(ring.lines(), [])

    def test_setup_logging_is_idempotent(self):
        h1 = applog.setup_logging()
        h2 = applog.setup_logging()
        self.assertIs(h1, h2)
        self.assertEqual(sum(isinstance(h, applog.FileAndRingHandler) for h in applog.logger.handlers), 1)

    def test_run_logged_logs_rejected_action_by_name(self):
        c = _seeded()
        with self.assertLogs("medminder", level="ERROR") as cm:
            result = applog.run_logged(c.submit)
        self.assertIsNone(result)
        self.assertIn("submit failed", cm.output[0])
        self.assertIn("InvalidTransition", cm.output[0])
        self.assertEqual(c.form.mode, s.FormMode.IDLE)

    def test_run_logged_passes_args_to_bound_method(self):
        c = _seeded()
        applog.run_logged(c.delete, 2)
        self.assertEqual([m.id for m in c.medicines], [1, 3])


class TestWidgets(unittest.TestCase):
    def test_glass_card_radius_is_numeric_and_separate_from_layout_radius(self):
        card = widgets.GlassCard(size=(200, 100), card_radius=12)
        self.assertIsInstance(card.card_radius, (int, float))
        self.assertEqual(card.card_radius, 12)
        self.assertFalse(hasattr(card, "radius"))
        self.assertGreater(len(card.canvas.before.children), 0)

    def test_glass_card_redraws_with_new_radius(self):
        card = widgets.GlassCard(size=(200, 100))
        card.card_radius = 4
        self.assertGreater(len(card.canvas.before.children), 0)

    def test_pill_color_by_count(self):
        self.assertEqual(widgets.pill_color(0), widgets.PILL_EMPTY)
        self.assertEqual(widgets.pill_color(3), widgets.PILL_FEW)
        self.assertEqual(widgets.pill_color(8), widgets.PILL_MANY)

    def test_pill_icon_follows_count(self):
        pill = widgets.PillIcon()
        self.assertEqual(list(pill.color), widgets.PILL_EMPTY)
        pill.count = 3
        self.assertEqual(list(pill.color), widgets.PILL_FEW)
        pill.count = 0
        self.assertEqual(list(pill.color), widgets.PILL_EMPTY)


if __name__ == "__main__":
    unittest.main(verbosity=2)
