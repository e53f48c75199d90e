# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
pytest configuration and fixtures for the svdcodec tests.
"""

import os
from pathlib import Path
from typing import Callable

import lxml.etree as ET
import pytest
from hypothesis import settings

# Default profile: balanced speed and coverage
settings.register_profile("default", max_examples=100, deadline=None)

# CI profile: more thorough testing
settings.register_profile("ci", max_examples=500, deadline=None)

# Dev profile: fast iteration
settings.register_profile("dev", max_examples=10, deadline=None)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


EXAMPLE_SVD = """\
<?xml version="1.0" encoding="utf-8"?>
<!-- Example device -->
<device schemaVersion="1.1" xmlns:xs="http://www.w3.org/2001/XMLSchema-instance" xs:noNamespaceSchemaLocation="CMSIS-SVD.xsd">
  <vendor>Nordic Semiconductor</vendor>
  <name>EXAMPLE</name>
  <version>1</version>
  <description>Example device</description>
  <cpu>
    <name>CM33</name>
    <revision>r0p4</revision>
    <endian>little</endian>
    <mpuPresent>1</mpuPresent>
    <fpuPresent>1</fpuPresent>
    <nvicPrioBits>3</nvicPrioBits>
    <vendorSystickConfig>0</vendorSystickConfig>
  </cpu>
  <addressUnitBits>8</addressUnitBits>
  <width>32</width>
  <size>32</size>
  <access>read-write</access>
  <resetValue>0x00000000</resetValue>
  <resetMask>0xFFFFFFFF</resetMask>
  <peripherals>
    <peripheral>
      <name>TIMER0</name>
      <description>Timer</description>
      <groupName>TIMER</groupName>
      <baseAddress>0x40008000</baseAddress>
      <addressBlock>
        <offset>0</offset>
        <size>0x1000</size>
        <usage>registers</usage>
      </addressBlock>
      <interrupt>
        <name>TIMER0</name>
        <value>8</value>
      </interrupt>
      <registers>
        <!-- Task registers -->
        <register>
          <dim>4</dim>
          <dimIncrement>4</dimIncrement>
          <name>TASKS_CAPTURE[%s]</name>
          <description>Capture Timer value to CC[%s] register</description>
          <addressOffset>0x040</addressOffset>
          <access>write-only</access>
          <fields>
            <field>
              <name>TASKS_CAPTURE</name>
              <bitOffset>0</bitOffset>
              <bitWidth>1</bitWidth>
              <enumeratedValues>
                <enumeratedValue>
                  <name>Trigger</name>
                  <value>1</value>
                </enumeratedValue>
              </enumeratedValues>
            </field>
          </fields>
        </register>
        <register>
          <name>MODE</name>
          <addressOffset>0x504</addressOffset>
          <fields>
            <field>
              <name>MODE</name>
              <bitRange>[1:0]</bitRange>
              <enumeratedValues>
                <usage>read-write</usage>
                <enumeratedValue>
                  <name>Timer</name>
                  <value>0</value>
                </enumeratedValue>
                <!-- Both counter modes -->
                <enumeratedValue>
                  <name>Counter</name>
                  <value>#1x</value>
                </enumeratedValue>
              </enumeratedValues>
            </field>
          </fields>
        </register>
        <register derivedFrom="MODE">
          <name>MODE_ALT</name>
          <addressOffset>0x508</addressOffset>
          <access>read-only</access>
        </register>
        <cluster>
          <name>PSEL</name>
          <addressOffset>0x600</addressOffset>
          <register>
            <name>OUT</name>
            <addressOffset>0x0</addressOffset>
            <fields>
              <field>
                <name>PIN</name>
                <lsb>0</lsb>
                <msb>4</msb>
              </field>
            </fields>
          </register>
        </cluster>
      </registers>
    </peripheral>
    <peripheral derivedFrom="TIMER0">
      <name>TIMER1</name>
      <baseAddress>0x40009000</baseAddress>
      <interrupt>
        <name>TIMER1</name>
        <value>9</value>
      </interrupt>
    </peripheral>
  </peripherals>
</device>
"""


@pytest.fixture
def example_svd() -> str:
    """A small but complete device description."""
    return EXAMPLE_SVD


@pytest.fixture
def example_svd_file(tmp_path: Path) -> Path:
    svd_file = tmp_path / "example.svd"
    svd_file.write_text(EXAMPLE_SVD, encoding="utf-8")
    return svd_file


@pytest.fixture
def xml() -> Callable[[str], ET._Element]:
    """Parse an XML fragment, keeping comments."""

    def parse_fragment(text: str) -> ET._Element:
        parser = ET.XMLParser(remove_comments=False, remove_blank_text=True)
        return ET.fromstring(text.strip().encode("utf-8"), parser=parser)

    return parse_fragment
