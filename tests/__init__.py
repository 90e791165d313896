"""
Higgs Hierarchy Test Suite.

Unit and integration tests for hierarchy selection and mass matrix assembly:
- Suitability: which hierarchies fit a mass ordering
- MDR shift: DR-bar' to MDR-bar' sfermion masses
- Selection: ranking against the exact two-loop oracle
- Assembly: expanded one-, two- and three-loop matrices

Test Files:
- test_parameters.py: Tests for ParameterSet and DerivedConstants
- test_suitability.py: Tests for SuitabilityClassifier
- test_mdr_shift.py: Tests for MDRShifter
- test_self_energy.py: Tests for the exact self-energy matrices
- test_expansion_table.py: Tests for ExpansionTable and ExpansionBundle
- test_assembler.py: Tests for MassMatrixAssembler
- test_selector.py: Tests for HierarchySelector
- test_oracle.py: Tests for the two-loop oracle binding
- test_calculator.py: Integration tests for HierarchyCalculator

Usage:
    # Run all tests
    pytest tests/ -v

    # Run specific test file
    pytest tests/test_selector.py -v

    # Run only unit tests (fast)
    pytest tests/ -m unit -v

    # Run only integration tests
    pytest tests/ -m integration -v
"""
