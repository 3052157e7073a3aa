# famicore

famicore is a small emulator core for the Nintendo Entertainment System.
It contains:

- a 6502 CPU with the official opcodes and the common unofficial ones, with cycle counting (including page-crossing and branch penalties)
- an iNES ROM loader for mapper 0 (NROM) cartridges
- a basic picture processing unit (PPU) with vblank timing, NMI generation, the VRAM address and data ports, and nametable mirroring
- a pygame window that shows the frame buffer

The CPU can produce a trace line for each instruction. The layout follows
the usual `nestest` log: address, instruction bytes, a `*` marker for
unofficial opcodes, disassembly, registers and cycle count.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running a ROM

```
famicore path/to/game.nes
```

This command loads the iNES image and resets the CPU. It then runs the
system with three PPU cycles for every CPU cycle. Before each instruction
it prints a trace line to standard output.

If no file is given, the command loads `pacman.nes` from the current
directory. If the file cannot be read or is not a usable cartridge, the
command prints an error and exits with status 1.

Options:

- `--quiet`: do not print the trace.
- `--headless`: do not open a window. Frames are still drawn into the
  framebuffer.
- `--steps N`: stop after `N` instructions. Without this option the command
  runs until it is interrupted, or until the window is closed.

## Using the library

```python
from famicore.rom import Rom
from famicore.util import read_file
from famicore.nes import Nes

data = read_file("game.nes")
rom = Rom.parse(data)
print(rom.mapper, rom.mirroring)

nes = Nes(data, display=None)          # no window; frames go to the framebuffer only
steps = nes.run(cpu_callback=lambda cpu: print(cpu.trace_line()), max_steps=1000)
```

### Modules

`famicore.rom`

- `Rom.parse(data)` reads an iNES image. It returns the PRG and CHR ROM,
  the mapper number and the `Mirroring`.
- It raises `RomError` in three cases: the magic bytes are wrong, the mapper
  is not 0, or the file is shorter than its header declares.

`famicore.cpu.CPU(bus_read, bus_write)`

- `step(callback=None)` runs one instruction and returns the number of
  cycles it took. It calls the callback before the instruction.
- `exec(cycles=0, callback=None)` runs until that many more cycles have
  passed. With `0` it runs forever.
- `reset()`, `nmi()` and `irq()` handle reset and interrupts. `irq()` is
  ignored while the interrupt-disable flag is set.
- `disas(opcode, args)` returns the disassembly text for one instruction.
- `trace_line()` returns the trace line for the instruction at the program
  counter. `trace()` also writes that line to standard output.
- The registers `a`, `x`, `y`, `sp` and `pc`, the `cycles` count and the
  `halted` flag are plain attributes. The flags are a `StatusFlags` instance
  in `status`, with `to_byte()` and `load(value)`.

`famicore.opcodes`

- `instruction_for(opcode)` returns an `Instruction` with its mnemonic
  (`name`), `AddrMode`, base cycle count and whether the opcode is official
  (`valid`).
- `instruction_bytes(mode)` returns the instruction length for an
  addressing mode.
- Opcodes that are not in the table decode as a two-cycle `NOP`.

`famicore.ppu`

- `PPU` handles the CPU-facing registers at `$2000–$3FFF`, mirrored every
  eight bytes.
- `exec(cycles)` and `step()` advance its scanline timing.
- When vblank starts with NMI enabled, the PPU renders a frame. It then
  presents the frame on the `Display`, if one was given, and calls its
  `on_nmi` callback. The same happens when NMI is switched on during vblank.
- `mirror_nametable_addr(addr, mirroring)` folds a nametable address onto
  the table it mirrors.
- `Ctrl`, `Mask`, `PpuStatus` and `PpuAddr` model the registers.

`famicore.window`

- `Framebuffer(width, height)` stores `0xRRGGBB` pixels.
  - `set_px` and `get_px` set and read one pixel. They raise `IndexError`
    outside the frame.
  - `to_rgb_bytes()` returns the frame as packed RGB bytes.
- `Display(width, height)` opens a pygame window.
  - `present(framebuffer)` draws a frame. It raises `SystemExit` when the
    window is closed.
  - `close()` shuts the window down.

`famicore.nes.Nes(ines, display=None)`

- This class wires the cartridge, CPU and PPU together.
- It decodes both memory maps: `read`/`write` for the CPU and
  `ppu_read`/`ppu_write` for the PPU. It mirrors the 2 KiB of RAM and
  mirrors a single 16 KiB PRG bank.
- It raises `BusError` on writes to cartridge space and on PPU accesses at
  `$4000` and above.
- Reads and writes to other unmapped CPU addresses are logged as warnings.
  Such reads return 0.
- On construction it clears the low byte of the reset vector and then
  resets the CPU. The CPU therefore starts at the beginning of the page the
  vector names, which for typical test images is `$C000`.
- `run(cpu_callback=None, max_steps=None)` steps the CPU and the PPU
  together and returns the number of instructions it ran.

## Limitations

The package is not a complete emulator:

- Only mapper 0 is supported.
- There is no sound and no controller input.
- Sprites are not drawn, and OAM DMA writes to `$4014` are ignored.
- Background rendering does not decode pattern data. It fills each 8×8 tile
  of the first nametable with the raw tile index used as a colour value.
- `BRK` sets `halted` instead of taking the interrupt vector. The CPU does
  not stop stepping because of it.
- `nmi()` jumps through the vector at `$FFFE`, the same vector `irq()`
  uses.
- Decimal mode is not emulated.
- Several unofficial opcodes decode their operand but have no effect:
  `ARR`, `LAS`, `LXA`, `SBX`, `SHA`, `SHX`, `SHY` and `TAS`.