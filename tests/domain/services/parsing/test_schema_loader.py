"""Test schema loading from ISF documents."""

import logging

import pytest

from dwarf_struct_query.domain.errors import CatalogReloadError, MalformedDocumentError
from dwarf_struct_query.domain.models.dwarf import PointerDepth, TypeCategory
from dwarf_struct_query.domain.repositories.catalog import CatalogHandle
from dwarf_struct_query.domain.services.parsing import SchemaLoader, load


def broken_member(sample_document, field):
    """Replace the 'weird' member of the 'broken' struct and load."""
    sample_document["user_types"]["broken"]["fields"]["weird"] = field
    catalog = SchemaLoader().load(sample_document)
    return catalog.lookup_struct("broken").member("weird")


@pytest.mark.unit
class TestSchemaLoaderMembers:
    """Member descriptors built from the sample document."""

    def test_task_scenario_layout(self, sample_catalog):
        task = sample_catalog.lookup_struct("Task")
        pid = task.member("pid")
        next_ = task.member("next")

        assert task.size_bytes == 16
        assert task.member_names == ["pid", "next"]
        assert (pid.category, pid.size_bytes, pid.offset_bytes) == (TypeCategory.INT, 4, 0)
        assert pid.is_signed and pid.is_little_endian and pid.is_valid
        assert next_.pointer_depth is PointerDepth.SINGLE
        assert (next_.size_bytes, next_.offset_bytes) == (8, 8)
        assert next_.pointer_target_name == "Task"
        assert next_.category is TypeCategory.STRUCT
        assert not next_.is_signed

    def test_members_keep_document_order(self, sample_catalog):
        sample = sample_catalog.lookup_struct("sample")
        assert sample.member_names == [
            "flag", "letter", "mode", "count", "ratio", "name", "argv", "flags", "link",
        ]

    def test_scalar_members(self, sample_catalog):
        sample = sample_catalog.lookup_struct("sample")
        assert sample.member("flag").category is TypeCategory.BOOL
        assert not sample.member("flag").is_signed
        assert sample.member("letter").category is TypeCategory.CHAR
        assert sample.member("letter").is_signed
        assert not sample.member("count").is_signed
        assert sample.member("ratio").category is TypeCategory.FLOAT
        assert sample.member("ratio").size_bytes == 8

    def test_array_member(self, sample_catalog):
        name = sample_catalog.lookup_struct("sample").member("name")
        assert name.is_array
        assert name.size_bytes == 8
        assert name.element_category is TypeCategory.CHAR
        assert name.element_size_bytes == 1
        assert name.element_name == "char"
        assert name.element_count == 8

    def test_double_pointer_member(self, sample_catalog):
        argv = sample_catalog.lookup_struct("sample").member("argv")
        assert argv.pointer_depth is PointerDepth.DOUBLE
        assert argv.category is TypeCategory.CHAR
        assert argv.pointer_target_name == "char"
        assert argv.size_bytes == 8

    def test_bitfield_member_is_whole_storage_unit(self, sample_catalog):
        flags = sample_catalog.lookup_struct("sample").member("flags")
        assert flags.category is TypeCategory.INT
        assert flags.size_bytes == 4
        assert not flags.is_signed
        assert (flags.bit_position, flags.bit_length) == (0, 3)
        assert flags.is_bitfield

    def test_enum_member(self, sample_catalog):
        mode = sample_catalog.lookup_struct("sample").member("mode")
        assert mode.category is TypeCategory.ENUM
        assert mode.size_bytes == 4
        assert not mode.is_signed
        assert mode.type_name == "e_mode"

    def test_nested_struct_member(self, sample_catalog):
        link = sample_catalog.lookup_struct("sample").member("link")
        assert link.category is TypeCategory.STRUCT
        assert link.size_bytes == 16
        assert link.type_name == "list_head"

    def test_union_members_overlap(self, sample_catalog):
        union = sample_catalog.lookup_struct("value_u")
        assert union.kind is TypeCategory.UNION
        assert [m.offset_bytes for m in union.members] == [0, 0]
        assert all(m.is_valid for m in union.members)

    def test_functions(self, sample_catalog):
        assert dict(sample_catalog.functions) == {0x1000: "do_fork", 0x2000: "do_exit"}

    def test_stats(self, sample_catalog):
        assert sample_catalog.stats() == {
            "aggregates": 5,
            "members": 17,
            "invalid_members": 1,
            "functions": 2,
        }


@pytest.mark.unit
class TestLoaderTolerance:
    """One bad entry only invalidates itself."""

    def test_unrecognized_member_kind(self, sample_catalog):
        broken = sample_catalog.lookup_struct("broken")
        assert broken is not None
        assert broken.member("good").is_valid
        weird = broken.member("weird")
        assert not weird.is_valid
        assert "mystery" in weird.invalid_reason
        assert [m.name for m in broken.invalid_members] == ["weird"]

    def test_other_aggregates_unaffected(self, sample_catalog):
        for name in ("Task", "list_head", "sample", "value_u"):
            assert not sample_catalog.lookup_struct(name).invalid_members

    def test_invalid_member_logged_with_user_type(self, sample_document, caplog):
        with caplog.at_level(logging.DEBUG):
            SchemaLoader().load(sample_document)
        assert "[load schema document → user type broken] Invalid member broken.weird" in (
            caplog.text
        )

    @pytest.mark.parametrize(
        "field, reason_fragment",
        [
            ({"offset": 4, "type": {"kind": "base", "name": "int128_t"}}, "unknown base type"),
            ({"offset": -4, "type": {"kind": "base", "name": "int"}}, "invalid offset"),
            ({"offset": "4", "type": {"kind": "base", "name": "int"}}, "invalid offset"),
            ({"offset": 8, "type": {"kind": "base", "name": "char"}}, "outside aggregate"),
            ({"offset": 6, "type": {"kind": "base", "name": "int"}}, "overrun"),
            ({"offset": 4, "type": {"kind": "struct", "name": "ghost"}}, "unknown struct"),
            ({"offset": 4, "type": {"kind": "enum", "name": "ghost"}}, "unknown enum"),
            ({"offset": 4, "type": {"kind": "base"}}, "no name"),
            ({"offset": 4, "type": "int"}, "not an object"),
            ({"offset": 4}, "not an object"),
            ({"offset": 4, "type": {"kind": ["base"]}}, "unrecognized type kind"),
            ("int", "not an object"),
            (
                {"offset": 4, "type": {"kind": "array", "count": 2,
                                       "subtype": {"kind": "mystery"}}},
                "array element",
            ),
            (
                {"offset": 4, "type": {"kind": "array", "count": -1,
                                       "subtype": {"kind": "base", "name": "char"}}},
                "invalid array count",
            ),
            (
                {"offset": 4, "type": {"kind": "bitfield", "bit_position": 30, "bit_length": 4,
                                       "type": {"kind": "base", "name": "int"}}},
                "exceed",
            ),
            (
                {"offset": 0, "type": {"kind": "bitfield", "bit_position": 0, "bit_length": 1,
                                       "type": {"kind": "base", "name": "double"}}},
                "integral",
            ),
            (
                {"offset": 4, "type": {"kind": "bitfield", "bit_position": 0, "bit_length": 0,
                                       "type": {"kind": "base", "name": "int"}}},
                "bit_length",
            ),
        ],
    )
    def test_bad_member_is_invalid_with_reason(self, sample_document, field, reason_fragment):
        weird = broken_member(sample_document, field)
        assert not weird.is_valid
        assert reason_fragment in weird.invalid_reason

    def test_base_type_width_mismatch_invalidates_users(self, sample_document):
        sample_document["base_types"]["_Bool"]["size"] = 4
        catalog = SchemaLoader().load(sample_document)

        flag = catalog.lookup_struct("sample").member("flag")
        assert not flag.is_valid
        assert "_Bool" in flag.invalid_reason
        assert catalog.lookup_struct("sample").member("letter").is_valid

    def test_unknown_base_kind_invalidates_users(self, sample_document):
        sample_document["base_types"]["int"]["kind"] = "decimal"
        catalog = SchemaLoader().load(sample_document)
        assert not catalog.lookup_struct("Task").member("pid").is_valid
        assert catalog.lookup_struct("Task").member("next").is_valid

    @pytest.mark.parametrize(
        "entry",
        [
            "not an object",
            {"kind": "class", "size": 8, "fields": {}},
            {"kind": "struct", "size": -1, "fields": {}},
            {"kind": "struct", "fields": {}},
        ],
    )
    def test_unusable_user_type_is_skipped(self, sample_document, entry):
        sample_document["user_types"]["bad"] = entry
        catalog = SchemaLoader().load(sample_document)

        assert catalog.lookup_struct("bad") is None
        assert catalog.lookup_struct("Task") is not None

    def test_fields_not_a_mapping_gives_empty_aggregate(self, sample_document):
        sample_document["user_types"]["empty"] = {"kind": "struct", "size": 4, "fields": []}
        catalog = SchemaLoader().load(sample_document)
        assert len(catalog.lookup_struct("empty")) == 0

    def test_nesting_limit(self, sample_document):
        char = {"kind": "base", "name": "char"}
        nested = {"kind": "array", "count": 1,
                  "subtype": {"kind": "array", "count": 1,
                              "subtype": {"kind": "array", "count": 1, "subtype": char}}}
        field = {"offset": 4, "type": nested}

        shallow = broken_member(sample_document, field)
        assert shallow.is_valid

        sample_document["user_types"]["broken"]["fields"]["weird"] = field
        catalog = SchemaLoader(max_type_depth=1).load(sample_document)
        assert not catalog.lookup_struct("broken").member("weird").is_valid


@pytest.mark.unit
class TestTypeReferences:
    """Type reference resolution details."""

    def test_triple_pointer_reports_double(self, sample_document):
        char = {"kind": "base", "name": "char"}
        field = {"offset": 0, "type": {"kind": "pointer", "subtype": {
            "kind": "pointer", "subtype": {"kind": "pointer", "subtype": char}}}}
        weird = broken_member(sample_document, {**field, "offset": 0})
        assert weird.is_valid
        assert weird.pointer_depth is PointerDepth.DOUBLE
        assert weird.pointer_target_name == "char"

    def test_pointer_to_unknown_target_stays_valid(self, sample_document):
        field = {"offset": 0, "type": {"kind": "pointer", "subtype": {"kind": "struct", "name": "ghost"}}}
        weird = broken_member(sample_document, field)
        assert weird.is_valid
        assert weird.pointer_target_name == "ghost"

    def test_void_pointer(self, sample_document):
        field = {"offset": 0, "type": {"kind": "pointer", "subtype": {"kind": "base", "name": "void"}}}
        weird = broken_member(sample_document, field)
        assert weird.is_valid
        assert weird.category is TypeCategory.VOID
        assert weird.is_pointer

    def test_pointer_to_function(self, sample_document):
        field = {"offset": 0, "type": {"kind": "pointer", "subtype": {"kind": "function"}}}
        weird = broken_member(sample_document, field)
        assert weird.category is TypeCategory.FUNCTION
        assert weird.pointer_target_name is None

    def test_flexible_array_has_zero_span(self, sample_document):
        field = {"offset": 4, "type": {"kind": "array", "count": 0,
                                       "subtype": {"kind": "base", "name": "int"}}}
        weird = broken_member(sample_document, field)
        assert weird.is_valid
        assert weird.size_bytes == 0
        assert weird.element_count == 0

    def test_array_of_pointers(self, sample_document):
        sample_document["user_types"]["vec"] = {
            "kind": "struct",
            "size": 16,
            "fields": {"slots": {"offset": 0, "type": {
                "kind": "array", "count": 2,
                "subtype": {"kind": "pointer", "subtype": {"kind": "struct", "name": "Task"}}}}},
        }
        catalog = SchemaLoader().load(sample_document)
        slots = catalog.lookup_struct("vec").member("slots")
        assert slots.element_count == 2
        assert slots.element.is_pointer
        assert slots.element.pointer_target_name == "Task"

    def test_signed_enum_base(self, sample_document):
        sample_document["enums"]["e_mode"]["base"] = "int"
        catalog = SchemaLoader().load(sample_document)
        assert catalog.lookup_struct("sample").member("mode").is_signed


@pytest.mark.unit
class TestDocumentLayout:
    """Global byte order and pointer width."""

    def test_big_endian_document(self, sample_document):
        sample_document["base_types"]["pointer"]["endian"] = "big"
        catalog = SchemaLoader().load(sample_document)

        task = catalog.lookup_struct("Task")
        assert not task.member("pid").is_little_endian
        assert not task.member("next").is_little_endian

    def test_pointer_width_from_document(self, sample_document):
        sample_document["base_types"]["pointer"]["size"] = 4
        catalog = SchemaLoader().load(sample_document)
        assert catalog.lookup_struct("Task").member("next").size_bytes == 4

    def test_missing_pointer_type_falls_back(self, sample_document, caplog):
        del sample_document["base_types"]["pointer"]
        with caplog.at_level(logging.WARNING):
            catalog = SchemaLoader(default_pointer_size=4).load(sample_document)

        assert catalog.lookup_struct("Task").member("next").size_bytes == 4
        assert catalog.lookup_struct("Task").member("pid").is_little_endian
        assert "pointer" in caplog.text

    def test_unusable_pointer_width_falls_back(self, sample_document):
        sample_document["base_types"]["pointer"]["size"] = 3
        catalog = SchemaLoader().load(sample_document)
        assert catalog.lookup_struct("Task").member("next").size_bytes == 8


@pytest.mark.unit
class TestMalformedDocument:
    """Top-level shape errors."""

    @pytest.mark.parametrize("document", [[], "schema", None, 42])
    def test_root_not_a_mapping(self, document):
        with pytest.raises(MalformedDocumentError):
            SchemaLoader().load(document)

    @pytest.mark.parametrize("section", ["base_types", "user_types"])
    def test_missing_required_section(self, sample_document, section):
        del sample_document[section]
        with pytest.raises(MalformedDocumentError, match=section):
            SchemaLoader().load(sample_document)

    @pytest.mark.parametrize("section", ["base_types", "user_types", "enums", "symbols"])
    def test_section_not_a_mapping(self, sample_document, section):
        sample_document[section] = ["not", "a", "mapping"]
        with pytest.raises(MalformedDocumentError, match=section):
            SchemaLoader().load(sample_document)

    def test_optional_sections_may_be_absent(self, sample_document):
        del sample_document["enums"]
        del sample_document["symbols"]
        catalog = SchemaLoader().load(sample_document)

        assert len(catalog.functions) == 0
        assert not catalog.lookup_struct("sample").member("mode").is_valid

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            SchemaLoader().load([])

    def test_failed_load_keeps_previous_catalog(self, sample_document):
        handle = CatalogHandle()
        first = SchemaLoader().load_into(handle, sample_document)

        with pytest.raises(MalformedDocumentError):
            SchemaLoader().load_into(handle, {"user_types": {}})
        assert handle.current is first


@pytest.mark.unit
class TestFunctionsAndReload:
    """Function collection, idempotence and publication."""

    def test_first_name_wins_per_address(self, sample_document):
        sample_document["symbols"]["fork_alias"] = {"address": 0x1000, "type": {"kind": "function"}}
        catalog = SchemaLoader().load(sample_document)
        assert catalog.lookup_function(0x1000, exact=True) == "do_fork"

    def test_function_without_address_is_skipped(self, sample_document):
        sample_document["symbols"]["inlined"] = {"type": {"kind": "function"}}
        catalog = SchemaLoader().load(sample_document)
        assert "inlined" not in catalog.functions.values()

    def test_extra_functions_do_not_override_document(self, sample_document):
        extra = {0x1000: "elf_name", 0x3000: "elf_only"}
        catalog = SchemaLoader().load(sample_document, extra_functions=extra)

        assert catalog.lookup_function(0x1000, exact=True) == "do_fork"
        assert catalog.lookup_function(0x3000, exact=True) == "elf_only"

    def test_load_is_idempotent(self, sample_document):
        loader = SchemaLoader()
        first = loader.load(sample_document)
        second = loader.load(sample_document)

        assert first == second
        assert first.stats() == second.stats()

    def test_repeated_publication_is_observably_identical(self, sample_document):
        handle = CatalogHandle()
        first = load(sample_document, handle)
        load(sample_document, handle)

        assert handle.current == first
        assert handle.current.stats()["aggregates"] == 5

    def test_reload_with_different_document_replaces(self, sample_document):
        handle = CatalogHandle()
        load(sample_document, handle)

        del sample_document["user_types"]["Task"]
        load(sample_document, handle)

        assert handle.lookup_struct("Task") is None
        assert handle.lookup_struct("sample") is not None

    def test_reload_disallowed_by_handle(self, sample_document):
        handle = CatalogHandle(allow_reload=False)
        load(sample_document, handle)
        with pytest.raises(CatalogReloadError):
            load(sample_document, handle)

    def test_module_load_without_handle(self, sample_document):
        catalog = load(sample_document)
        assert catalog.lookup_struct("Task") is not None

    def test_summary_logged(self, sample_document, caplog):
        with caplog.at_level(logging.INFO):
            SchemaLoader().load(sample_document)
        assert "Loaded 5 aggregates (17 members, 1 invalid) and 2 functions" in caplog.text
