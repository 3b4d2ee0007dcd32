""" Test Go struct generation for schemas proto3 cannot represent """

import unittest

import pytest

from openapiproto.openapitogo import discriminator_values, go_comment, go_field_name
from openapiproto.openapidoc import parse_document
from openapiproto.openapitoproto import ConvertOptions, convert

HEADER = "openapi: 3.0.0\ninfo: {title: t, version: '1'}\ncomponents:\n  schemas:\n"
OPTIONS = ConvertOptions("api.v1", "example.com/api/v1")

PETS = """
    Pet:
      oneOf:
        - $ref: '#/components/schemas/Dog'
        - $ref: '#/components/schemas/Cat'
      discriminator:
        propertyName: petType
        mapping:
          dog: '#/components/schemas/Dog'
    Dog:
      type: object
      properties:
        petType: {type: string}
        bark: {type: boolean}
    Cat:
      type: object
      description: A cat.
      properties:
        petType: {type: string}
        lives: {type: integer}
"""

EXPECTED_PETS = '''// Code generated by openapiproto. DO NOT EDIT.

package v1

import (
	"encoding/json"
	"fmt"
	"strings"
)

// Pet holds exactly one of its variants, selected by the "petType" property.
type Pet struct {
	Dog *Dog
	Cat *Cat
}

// MarshalJSON encodes the populated variant as a flat JSON object.
func (u Pet) MarshalJSON() ([]byte, error) {
	if u.Dog != nil {
		return json.Marshal(u.Dog)
	}
	if u.Cat != nil {
		return json.Marshal(u.Cat)
	}
	return nil, fmt.Errorf("Pet: no variant is set")
}

// UnmarshalJSON reads the "petType" property and decodes into the matching variant.
func (u *Pet) UnmarshalJSON(data []byte) error {
	var probe struct {
		Discriminator string `json:"petType"`
	}
	if err := json.Unmarshal(data, &probe); err != nil {
		return err
	}
	*u = Pet{}
	switch {
	case strings.EqualFold(probe.Discriminator, "dog"):
		u.Dog = &Dog{}
		return json.Unmarshal(data, u.Dog)
	case strings.EqualFold(probe.Discriminator, "Cat"):
		u.Cat = &Cat{}
		return json.Unmarshal(data, u.Cat)
	}
	return fmt.Errorf("Pet: unknown petType %q", probe.Discriminator)
}

type Dog struct {
	PetType string `json:"petType"`
	Bark    bool   `json:"bark"`
}

// A cat.
type Cat struct {
	PetType string `json:"petType"`
	Lives   int32  `json:"lives"`
}
'''


def to_go(schemas: str, options: ConvertOptions = OPTIONS) -> str:
    return convert(HEADER + schemas, options).golang.decode('utf-8')


class TestGoHelpers(unittest.TestCase):
    """ Test the Go naming and comment helpers """

    def test_go_comment(self):
        self.assertEqual(go_comment(""), "")
        self.assertEqual(go_comment("One\n\nTwo  \n"), "// One\n//\n// Two\n")

    def test_go_field_name(self):
        self.assertEqual(go_field_name("petType"), "PetType")
        self.assertEqual(go_field_name("user_id"), "UserId")
        self.assertEqual(go_field_name("2fa"), "X2fa")

    def test_discriminator_values(self):
        schemas = dict(parse_document(HEADER + PETS).schemas())
        self.assertEqual(discriminator_values(schemas["Pet"]), {"Dog": "dog", "Cat": "Cat"})


class TestGoGeneration(unittest.TestCase):
    """ Test generated Go source """

    def test_union_exact_output(self):
        self.assertEqual(to_go(PETS), EXPECTED_PETS)

    def test_referencing_struct(self):
        go = to_go(PETS + """
    Owner:
      type: object
      description: Owns pets.
      properties:
        name: {type: string}
        pet: {$ref: '#/components/schemas/Pet'}
        pets:
          type: array
          items: {$ref: '#/components/schemas/Pet'}
        photo: {type: string, format: byte}
        weight: {type: number, format: float}
        visits: {type: integer, format: int64}
""")
        self.assertIn("// Owns pets.\n"
                      "type Owner struct {\n"
                      "\tName   string  `json:\"name\"`\n"
                      "\tPet    *Pet    `json:\"pet,omitempty\"`\n"
                      "\tPets   []*Pet  `json:\"pets,omitempty\"`\n"
                      "\tPhoto  []byte  `json:\"photo,omitempty\"`\n"
                      "\tWeight float32 `json:\"weight\"`\n"
                      "\tVisits int64   `json:\"visits\"`\n"
                      "}\n", go)

    def test_inline_object_struct(self):
        go = to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        address:
          type: object
          properties:
            zip: {type: string}
""")
        self.assertIn("\tAddress *OwnerAddress `json:\"address,omitempty\"`\n", go)
        self.assertIn("type OwnerAddress struct {\n\tZip string `json:\"zip\"`\n}\n", go)
        self.assertLess(go.index("type Owner struct"), go.index("type OwnerAddress struct"))

    def test_enum_references(self):
        go = to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        mood: {$ref: '#/components/schemas/Mood'}
        level: {$ref: '#/components/schemas/Level'}
    Mood:
      type: string
      enum: [happy, sad]
    Level:
      type: integer
      enum: [1, 2]
""")
        self.assertIn("\tMood  string `json:\"mood\"`\n", go)
        self.assertIn("\tLevel int32  `json:\"level\"`\n", go)

    def test_proto_package_import(self):
        options = ConvertOptions("api.v1", "example.com/api/v1", go_package_path="example.com/api/v1/types")
        go = to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        toy: {$ref: '#/components/schemas/Toy'}
    Toy:
      type: object
      properties:
        name: {type: string}
""", options)
        self.assertIn("package types\n", go)
        self.assertIn('\t"strings"\n\n\tv1 "example.com/api/v1"\n)\n', go)
        self.assertIn("\tToy *v1.Toy `json:\"toy,omitempty\"`\n", go)

    def test_go_keyword_path_segments_are_escaped(self):
        options = ConvertOptions("api.type", "example.com/api/type", go_package_path="example.com/api/go")
        go = to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        toy: {$ref: '#/components/schemas/Toy'}
    Toy:
      type: object
      properties:
        name: {type: string}
""", options)
        self.assertIn("package go_\n", go)
        self.assertIn('\ttype_ "example.com/api/type"\n', go)
        self.assertIn("\tToy *type_.Toy `json:\"toy,omitempty\"`\n", go)

    def test_same_package_needs_no_import_alias(self):
        go = to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        toy: {$ref: '#/components/schemas/Toy'}
    Toy:
      type: object
      properties:
        name: {type: string}
""")
        self.assertIn("\tToy *Toy `json:\"toy,omitempty\"`\n", go)
        self.assertNotIn("example.com", go)

    def test_alias_of_union(self):
        go = to_go(PETS + """
    Animal: {$ref: '#/components/schemas/Pet'}
""")
        self.assertIn("\ntype Animal = Pet\n", go)

    def test_field_name_collisions(self):
        go = to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        pet_name: {type: string}
        petName: {type: string}
""")
        self.assertIn("\tPetName   string `json:\"pet_name\"`\n", go)
        self.assertIn("\tPetName_2 string `json:\"petName\"`\n", go)

    def test_property_error_in_go_struct(self):
        with pytest.raises(ValueError, match="schema 'Owner': property 'grid' nested arrays not supported"):
            to_go(PETS + """
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        grid:
          type: array
          items:
            type: array
            items: {type: integer}
""")

    def test_inline_struct_name_avoids_top_level_names(self):
        go = to_go(PETS + """
    OwnerAddress:
      type: object
      properties:
        line: {type: string}
    Owner:
      type: object
      properties:
        pet: {$ref: '#/components/schemas/Pet'}
        address:
          type: object
          properties:
            zip: {type: string}
""")
        self.assertIn("type OwnerAddress_2 struct {", go)
