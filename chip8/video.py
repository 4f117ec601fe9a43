# Framebuffer -> RGBA pixels for the video sink.

import numpy as np


def framebuffer_to_rgba(framebuffer, scale=1, foreground=(255, 255, 255), background=(0, 0, 0),
                        flip=True):
    """Return a (H*scale, W*scale, 4) uint8 array for ``framebuffer``.

    pyglet images start at the bottom-left corner, so rows are flipped by
    default to keep pixel (0, 0) at the top-left of the window.
    """
    framebuffer = np.asarray(framebuffer, dtype=bool)
    if flip:
        framebuffer = framebuffer[::-1]

    height, width = framebuffer.shape
    small = np.empty((height, width, 4), dtype=np.uint8)
    small[...] = (*background, 255)
    small[framebuffer] = (*foreground, 255)

    if scale != 1:
        small = np.repeat(np.repeat(small, scale, axis=0), scale, axis=1)
    return small
